"""
Repositorio para la entidad User.
Compone un BaseRepository y agrega las búsquedas propias de usuarios.
"""

from typing import List, Optional, Sequence
import logging

from repositories.base_repository import BaseRepository
from repositories.contract import RepositoryContract, EntityId
from database.db import Database
from database.models import UserORM
from core.exceptions import ConflictException
from core.pagination import PaginationOptions, PaginatedEntities, PaginationResult

logger = logging.getLogger(__name__)

#columnas de solo escritura: no se filtran ni se ordenan por ellas
HIDDEN_FIELDS = frozenset({"password"})


class UserRepository(RepositoryContract[UserORM]):
    """Repositorio para la gestión de entidades de usuario."""

    def __init__(self, database: Database, logger: Optional[logging.Logger] = None):
        """
        Inicializa el repositorio de usuarios.

        Args:
            database: Handle de base de datos
            logger: Logger opcional que se pasa al repositorio base
        """
        self.base = BaseRepository(
            database, UserORM, logger=logger, hidden_fields=HIDDEN_FIELDS
        )

    def find_by_email(self, email: str) -> Optional[UserORM]:
        """
        Busca un usuario por email.

        Returns:
            UserORM o None si no se encuentra
        """
        return self.base.find_one_by(email=email)

    def create(self, entity: UserORM) -> UserORM:
        """
        Crea un usuario verificando antes que el email no esté registrado.

        Raises:
            ConflictException: si el email ya existe
        """
        if self.find_by_email(entity.email) is not None:
            logger.info(f"Rejected duplicate user email {entity.email}")
            raise ConflictException("User already exists.", details={"field": "email"})
        return self.base.create(entity)

    def update(self, entity: UserORM) -> UserORM:
        return self.base.update(entity)

    def delete(self, id: EntityId) -> None:
        self.base.delete(id)

    def find_by_id(self, id: EntityId) -> UserORM:
        return self.base.find_by_id(id)

    def find_all(self) -> List[UserORM]:
        return self.base.find_all()

    def paginate(
        self,
        options: Optional[PaginationOptions] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> PaginatedEntities[UserORM]:
        return self.base.paginate(options, fields)

    def paginate_range(self, total: int, limit: int = 10, page: int = 1) -> PaginationResult:
        return self.base.paginate_range(total, limit, page)

    def exists_email(self, email: str, exclude_id: Optional[EntityId] = None) -> bool:
        """
        Verifica si un email ya está registrado.

        Args:
            email: Email a verificar
            exclude_id: ID a excluir de la verificación (para actualizaciones)
        """
        found = self.find_by_email(email)
        return found is not None and found.id != exclude_id
