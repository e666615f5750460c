"""
Utilidades de paginación para una paginación consistente en toda la aplicación.

Las páginas son 1-indexed. La metadata se serializa en camelCase
(totalItems, totalPages, currentPage, itemsPerPage).
"""

from typing import Any, Dict, List, Optional, TypeVar, Generic
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar('T')

DEFAULT_LIMIT = 10
DEFAULT_PAGE = 1


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


def coerce_positive_int(value: Any, default: int) -> int:
    """
    Convierte un valor a entero positivo.

    Valores no numéricos, vacíos o menores a 1 devuelven el default.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class PaginationOptions(BaseModel):
    """Opciones de filtrado, ordenamiento y paginación."""
    where: Optional[Dict[str, Any]] = Field(None, description="Filtros de igualdad por campo")
    sort: Optional[str] = Field(None, description="Campo por el cual ordenar")
    order: SortOrder = Field(SortOrder.ASC, description="Dirección del orden")
    limit: int = Field(DEFAULT_LIMIT, ge=1, description="Items por página")
    page: int = Field(DEFAULT_PAGE, ge=1, description="Número de página (1-indexed)")

    @field_validator("limit", mode="before")
    @classmethod
    def coerce_limit(cls, v: Any) -> int:
        return coerce_positive_int(v, DEFAULT_LIMIT)

    @field_validator("page", mode="before")
    @classmethod
    def coerce_page(cls, v: Any) -> int:
        return coerce_positive_int(v, DEFAULT_PAGE)

    @field_validator("order", mode="before")
    @classmethod
    def coerce_order(cls, v: Any) -> SortOrder:
        if isinstance(v, SortOrder):
            return v
        if isinstance(v, str) and v.strip().upper() == SortOrder.DESC.value:
            return SortOrder.DESC
        return SortOrder.ASC

    @field_validator("sort", mode="before")
    @classmethod
    def blank_sort_is_none(cls, v: Any) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PaginationResult(BaseModel):
    """Metadata para la paginacion."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_items: int = Field(..., ge=0, description="Total items available")
    total_pages: int = Field(..., ge=0, description="Total pages")
    current_page: int = Field(..., description="Requested page number (not clamped)")
    items_per_page: int = Field(..., ge=1, description="Page size")


@dataclass
class PaginatedEntities(Generic[T]):
    """Resultado de una consulta paginada: entidades de la página y total filtrado."""
    entities: List[T] = field(default_factory=list)
    total: int = 0


def range_of(total: int, limit: int, page: int) -> PaginationResult:
    """
    Calcula la metadata de la paginación.

    Args:
        total: Total de items que coinciden con el filtro
        limit: Items por página
        page: Página solicitada (1-indexed); se devuelve tal cual, sin ajustar

    Returns:
        PaginationResult con valores calculados
    """
    total_pages = (total + limit - 1) // limit if limit > 0 else 0

    return PaginationResult(
        total_items=total,
        total_pages=total_pages,
        current_page=page,
        items_per_page=limit,
    )


def offset_of(limit: int, page: int) -> int:
    """
    Calcula el valor de skip/offset para las consultas de la base de datos.

    Args:
        limit: Número de elementos por página
        page: Número de página actual (indexado desde 1)

    Returns:
        Número de elementos a saltar
    """
    return (max(page, 1) - 1) * limit
