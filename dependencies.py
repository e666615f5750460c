"""
Dependency injection for services and repositories.

This module provides FastAPI dependencies for injecting the database handle,
repositories and services into route handlers. The repository is shared
across requests so the connection check runs once per process.
"""

from functools import lru_cache

from fastapi import Depends

from config import settings
from database.db import Database
from repositories.user_repository import UserRepository
from services.user_service import UserService


@lru_cache
def get_database() -> Database:
    """Database handle built from the application settings."""
    return Database.from_url(settings.database_url, echo=settings.debug_mode)


@lru_cache
def get_user_repository() -> UserRepository:
    """Get the process-wide UserRepository."""
    return UserRepository(get_database())


def get_user_service(
    repository: UserRepository = Depends(get_user_repository),
) -> UserService:
    """Inject UserService with its dependencies."""
    return UserService(repository, default_page_size=settings.default_page_size)
