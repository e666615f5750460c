"""
Contrato que todo repositorio de entidades debe cumplir.
"""

from abc import ABC, abstractmethod
from typing import TypeVar, Generic, List, Optional, Sequence, Union

from core.pagination import PaginationOptions, PaginatedEntities

T = TypeVar('T')

EntityId = Union[int, str]


class RepositoryContract(ABC, Generic[T]):
    """
    Operaciones CRUD + paginación sobre una entidad con campo de identidad `id`.

    Los fallos se señalan con subclases de AppException (ver core.exceptions);
    find_by_id lanza NotFoundException cuando no hay coincidencia, el resto de
    búsquedas devuelven una colección vacía.
    """

    @abstractmethod
    def create(self, entity: T) -> T:
        """Crea una entidad y la devuelve con identidad y timestamps generados."""

    @abstractmethod
    def update(self, entity: T) -> T:
        """Guarda la entidad completa y devuelve el estado persistido."""

    @abstractmethod
    def delete(self, id: EntityId) -> None:
        """Elimina por identidad. No falla si no existe."""

    @abstractmethod
    def find_by_id(self, id: EntityId) -> T:
        """Devuelve la entidad o lanza NotFoundException."""

    @abstractmethod
    def find_all(self) -> List[T]:
        """Devuelve todas las entidades sin filtrar."""

    @abstractmethod
    def paginate(
        self,
        options: Optional[PaginationOptions] = None,
        fields: Optional[Sequence[str]] = None,
    ) -> PaginatedEntities[T]:
        """Devuelve una página filtrada/ordenada y el total filtrado."""
