"""
Excepciones personalizadas para la aplicación.

Estas excepciones proporcionan una forma estructurada de manejar errores del
almacenamiento y de lógica de negocio. Cada excepción pertenece a un ErrorKind
de un conjunto cerrado, y cada kind tiene un código de estado HTTP estable.
"""

from typing import Optional, Any, List
from enum import Enum
import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm.exc import StaleDataError


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    CONFLICT = "Conflict"
    VALIDATION_FAILURE = "ValidationFailure"
    CONNECTION_FAILURE = "ConnectionFailure"
    UNKNOWN_STORE_FAILURE = "UnknownStoreFailure"


STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION_FAILURE: 400,
    ErrorKind.CONNECTION_FAILURE: 500,
    ErrorKind.UNKNOWN_STORE_FAILURE: 500,
}


class AppException(Exception):
    """Excepción base para todos los errores de la aplicación."""

    kind: ErrorKind = ErrorKind.UNKNOWN_STORE_FAILURE

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class NotFoundException(AppException):
    """Excepción cuando un recurso no se encuentra."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str,
        identifier: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with ID {identifier} not found"
        super().__init__(message=message, details=details)


class ConflictException(AppException):
    """Excepción cuando se viola una restricción de unicidad."""

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "Resource already exists.",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details)


class ValidationException(AppException):
    """Excepción para datos rechazados antes de llegar al almacenamiento."""

    kind = ErrorKind.VALIDATION_FAILURE

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[List[Any]] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        if field:
            details = details or {}
            details["field"] = field
        self.errors = list(errors or [])
        if not self.errors and field:
            self.errors = [{"field": field, "errors": [message]}]
        super().__init__(message=message, details=details)


class ConnectionFailureException(AppException):
    """Excepción cuando el almacenamiento no está disponible o no se pudo inicializar."""

    kind = ErrorKind.CONNECTION_FAILURE

    def __init__(
        self,
        message: str = "Database connection error.",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details)


class DatabaseException(AppException):
    """Excepción para errores de base de datos no clasificados."""

    kind = ErrorKind.UNKNOWN_STORE_FAILURE

    def __init__(
        self,
        message: str = "Database error",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details)


_CONNECTION_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
)


def _kind_of(error: BaseException) -> ErrorKind:
    if isinstance(error, AppException):
        return error.kind
    if isinstance(error, sa_exc.IntegrityError):
        return ErrorKind.CONFLICT
    if isinstance(error, (sa_exc.NoResultFound, StaleDataError)):
        return ErrorKind.NOT_FOUND
    if isinstance(error, _CONNECTION_ERRORS):
        return ErrorKind.CONNECTION_FAILURE
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return ErrorKind.CONNECTION_FAILURE
    if isinstance(error, PydanticValidationError):
        return ErrorKind.VALIDATION_FAILURE
    return ErrorKind.UNKNOWN_STORE_FAILURE


def classify_store_error(
    error: BaseException,
    logger: logging.Logger,
    **context: Any,
) -> ErrorKind:
    """
    Clasifica un fallo del almacenamiento en un ErrorKind y lo registra.

    Args:
        error: Excepción original
        logger: Logger que recibe el registro de la clasificación
        **context: Datos adicionales (entity, operation, ...)

    Returns:
        El ErrorKind asignado
    """
    kind = _kind_of(error)
    logger.error(
        f"Database error ({kind.value}): {error}",
        extra={"error_kind": kind.value, "context": context},
        exc_info=error,
    )
    return kind


_EXCEPTIONS_BY_KIND = {
    ErrorKind.CONFLICT: ConflictException,
    ErrorKind.CONNECTION_FAILURE: ConnectionFailureException,
    ErrorKind.UNKNOWN_STORE_FAILURE: DatabaseException,
}


def exception_for_kind(
    kind: ErrorKind,
    message: str,
    details: Optional[dict[str, Any]] = None,
    resource: str = "Entity",
) -> AppException:
    """Construye la excepción tipada correspondiente a un ErrorKind."""
    if kind is ErrorKind.NOT_FOUND:
        return NotFoundException(resource=resource, details=details)
    if kind is ErrorKind.VALIDATION_FAILURE:
        return ValidationException(message=message, details=details)
    return _EXCEPTIONS_BY_KIND[kind](message=message, details=details)
