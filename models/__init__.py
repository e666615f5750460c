from .users import User, UserCreate, UserUpdate
from .common import (
    ResponseEnvelope,
    ResponseStatus,
    success_response,
    error_response,
    error_response_from_exception,
)

__all__ = [
    # Users
    "User", "UserCreate", "UserUpdate",
    # Common responses
    "ResponseEnvelope", "ResponseStatus",
    "success_response", "error_response", "error_response_from_exception",
]
