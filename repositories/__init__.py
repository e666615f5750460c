"""
Capa de repositorio para el acceso a datos.
Este paquete contiene el contrato de repositorio, el repositorio genérico y los
repositorios por entidad. Los repositorios proporcionan una abstracción sobre el
ORM y no deben contener lógica de negocio.

"""

from .contract import RepositoryContract
from .base_repository import BaseRepository, ConnectionState
from .user_repository import UserRepository

__all__ = [
    "RepositoryContract",
    "BaseRepository",
    "ConnectionState",
    "UserRepository",
]
