""" Utilidades principales y componentes compartidos para la aplicación.

Este paquete contiene:

- Excepciones tipadas y clasificación de errores del almacenamiento
- Funciones de paginación
"""

from .exceptions import (
    ErrorKind,
    STATUS_CODES,
    AppException,
    NotFoundException,
    ConflictException,
    ValidationException,
    ConnectionFailureException,
    DatabaseException,
    classify_store_error,
    exception_for_kind,
)
from .pagination import (
    SortOrder,
    PaginationOptions,
    PaginationResult,
    PaginatedEntities,
    coerce_positive_int,
    range_of,
    offset_of,
)

__all__ = [
    # Excepciones
    "ErrorKind",
    "STATUS_CODES",
    "AppException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "ConnectionFailureException",
    "DatabaseException",
    "classify_store_error",
    "exception_for_kind",
    # paginacion
    "SortOrder",
    "PaginationOptions",
    "PaginationResult",
    "PaginatedEntities",
    "coerce_positive_int",
    "range_of",
    "offset_of",
]
