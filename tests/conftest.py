"""
Configuración de fixtures para pytest.

Este módulo contiene fixtures reutilizables para todos los tests.
"""

import pytest
import os
import logging
from typing import Generator, Dict, Any, List
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Configurar para usar base de datos en memoria para tests
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

from main import app
from database.db import Database, Base
from database.models import UserORM
from dependencies import get_database, get_user_repository
from repositories.base_repository import BaseRepository
from repositories.user_repository import UserRepository


# ==================== Database Fixtures ====================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def database(db_engine) -> Database:
    """Database handle over the in-memory engine."""
    return Database(db_engine)


@pytest.fixture
def capture_logger() -> logging.Logger:
    """Logger aislado; los tests lo observan con caplog."""
    test_logger = logging.getLogger("tests.repository")
    test_logger.setLevel(logging.DEBUG)
    return test_logger


@pytest.fixture
def user_base_repository(database: Database, capture_logger: logging.Logger) -> BaseRepository[UserORM]:
    """Generic repository bound to UserORM."""
    return BaseRepository(database, UserORM, logger=capture_logger)


@pytest.fixture
def user_repository(database: Database) -> UserRepository:
    """Create a UserRepository instance."""
    return UserRepository(database)


@pytest.fixture(scope="function")
def client(user_repository: UserRepository, database: Database) -> Generator[TestClient, None, None]:
    """Create a test client bound to the test database."""
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_user_repository] = lambda: user_repository

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== User Fixtures ====================

@pytest.fixture
def user_data() -> Dict[str, Any]:
    """Sample user data for testing."""
    return {
        "name": "Ana Test",
        "email": "a@x.com",
        "password": "password123",
    }


@pytest.fixture
def stored_user(user_base_repository: BaseRepository[UserORM]) -> UserORM:
    """Create a user in the database."""
    return user_base_repository.create(UserORM(name="Stored User", email="stored@x.com"))


@pytest.fixture
def many_users(user_base_repository: BaseRepository[UserORM]) -> List[UserORM]:
    """Create 25 users (user00 .. user24)."""
    return [
        user_base_repository.create(UserORM(name=f"User {i:02d}", email=f"user{i:02d}@x.com"))
        for i in range(25)
    ]
