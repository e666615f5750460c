from .models import Base, UserORM
from .db import (
    Database,
    hash_password,
    verify_password,
)

__all__ = [
    "Base",
    "UserORM",
    "Database",
    "hash_password",
    "verify_password",
]
