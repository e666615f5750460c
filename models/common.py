"""
Modelos comunes de respuesta para la API.

ResponseEnvelope es la única forma de respuesta de la aplicación. Solo
success_response y error_response la construyen; el resto del código
pasa por ellos.
"""
from typing import Generic, TypeVar, Optional, List, Any
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from core.exceptions import AppException, ErrorKind, ValidationException
from core.pagination import PaginationResult

T = TypeVar('T')


class ResponseStatus(str, Enum):
    success = "success"
    error = "error"


class ResponseEnvelope(BaseModel, Generic[T]):
    """Respuesta estándar de éxito o error."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    data: Optional[Any] = Field(None, description="Datos de respuesta")
    status: ResponseStatus = Field(..., description="success o error")
    status_code: int = Field(..., description="Código HTTP de la respuesta")
    message: str = Field(..., description="Mensaje descriptivo de la operación")
    pagination: Optional[PaginationResult] = Field(None, description="Metadata de paginación")
    validation_errors: Optional[List[Any]] = Field(None, description="Errores de validación")

    @model_validator(mode="after")
    def check_status_consistency(self) -> "ResponseEnvelope[T]":
        if self.status is ResponseStatus.success and self.validation_errors:
            raise ValueError("a success response cannot carry validation errors")
        if self.status is ResponseStatus.error and self.data is not None:
            raise ValueError("an error response cannot carry data")
        return self

    @property
    def is_success(self) -> bool:
        return self.status is ResponseStatus.success

    def to_wire(self) -> dict:
        """Serializa la respuesta con nombres camelCase, lista para JSON."""
        body = self.model_dump(mode="json", by_alias=True)
        for key in ("pagination", "validationErrors"):
            if body.get(key) is None:
                body.pop(key, None)
        return body


def success_response(
    data: Any = None,
    pagination: Optional[PaginationResult] = None,
    message: str = "Operation successful",
    status_code: int = 200,
) -> ResponseEnvelope:
    """Helper para crear respuestas exitosas."""
    return ResponseEnvelope(
        data=data,
        status=ResponseStatus.success,
        status_code=status_code,
        message=message,
        pagination=pagination,
    )


def error_response(
    message: str = "An error occurred",
    status_code: int = 500,
    validation_errors: Optional[List[Any]] = None,
) -> ResponseEnvelope:
    """Helper para crear respuestas de error."""
    return ResponseEnvelope(
        data=None,
        status=ResponseStatus.error,
        status_code=status_code,
        message=message,
        validation_errors=list(validation_errors or []),
    )


def error_response_from_exception(exc: AppException) -> ResponseEnvelope:
    """Convierte una excepción tipada en una respuesta de error."""
    validation_errors = None
    if exc.kind is ErrorKind.VALIDATION_FAILURE and isinstance(exc, ValidationException):
        validation_errors = exc.errors
    return error_response(
        message=exc.message,
        status_code=exc.status_code,
        validation_errors=validation_errors,
    )
