"""
Tests for the generic BaseRepository.

Tests cover:
- Create / find / update / delete
- Idempotent delete
- Pagination with filters, sorting and field selection
- Failure classification and logging
"""

import logging

import pytest
from sqlalchemy import event, inspect as sa_inspect

from core.exceptions import (
    ConflictException,
    DatabaseException,
    NotFoundException,
    ValidationException,
)
from core.pagination import PaginationOptions, SortOrder
from database.models import UserORM
from repositories.base_repository import BaseRepository, ConnectionState
from repositories.contract import RepositoryContract


class TestBaseRepositoryCreate:
    """Tests for creating entities."""

    def test_create_populates_identity_and_timestamps(self, user_base_repository: BaseRepository[UserORM]):
        created = user_base_repository.create(UserORM(name="Ana", email="ana@x.com"))

        assert created.id is not None
        assert created.created_at is not None
        assert created.updated_at is not None

    def test_create_then_find_round_trip(self, user_base_repository: BaseRepository[UserORM]):
        created = user_base_repository.create(UserORM(name="Ana", email="ana@x.com", password="s$h"))

        found = user_base_repository.find_by_id(created.id)

        assert found.id == created.id
        assert found.name == "Ana"
        assert found.email == "ana@x.com"
        assert found.password == "s$h"

    def test_create_duplicate_email_raises_conflict(self, user_base_repository: BaseRepository[UserORM]):
        user_base_repository.create(UserORM(name="Ana", email="a@x.com"))

        with pytest.raises(ConflictException) as exc_info:
            user_base_repository.create(UserORM(name="Otra", email="a@x.com"))

        assert exc_info.value.status_code == 409
        # the native error is chained, never exposed as the raised type
        assert exc_info.value.__cause__ is not None

    def test_conflict_is_logged_with_context(self, user_base_repository, caplog):
        user_base_repository.create(UserORM(name="Ana", email="a@x.com"))

        with caplog.at_level(logging.ERROR, logger="tests.repository"):
            with pytest.raises(ConflictException):
                user_base_repository.create(UserORM(name="Otra", email="a@x.com"))

        records = [r for r in caplog.records if getattr(r, "error_kind", None) == "Conflict"]
        assert len(records) == 1
        assert records[0].context == {"entity": "UserORM", "operation": "create"}

    def test_create_missing_required_column_is_conflict(self, user_base_repository):
        # NOT NULL violations surface as IntegrityError too
        with pytest.raises(ConflictException):
            user_base_repository.create(UserORM(name="Sin email"))


class TestBaseRepositoryRead:
    """Tests for reading entities."""

    def test_find_by_id_missing_raises_not_found(self, user_base_repository):
        with pytest.raises(NotFoundException) as exc_info:
            user_base_repository.find_by_id(999999)

        assert exc_info.value.status_code == 404

    def test_find_all_returns_every_row_in_id_order(self, user_base_repository, many_users):
        found = user_base_repository.find_all()

        assert [u.id for u in found] == sorted(u.id for u in many_users)

    def test_find_all_empty(self, user_base_repository):
        assert user_base_repository.find_all() == []

    def test_find_one_by(self, user_base_repository, stored_user):
        found = user_base_repository.find_one_by(email="stored@x.com")

        assert found is not None
        assert found.id == stored_user.id

    def test_find_one_by_no_match_returns_none(self, user_base_repository):
        assert user_base_repository.find_one_by(email="nobody@x.com") is None

    def test_find_one_by_unknown_field(self, user_base_repository):
        with pytest.raises(ValidationException):
            user_base_repository.find_one_by(nickname="x")

    def test_count_and_exists(self, user_base_repository, many_users):
        assert user_base_repository.count() == 25
        assert user_base_repository.count(email="user03@x.com") == 1
        assert user_base_repository.exists(many_users[0].id) is True
        assert user_base_repository.exists(999999) is False

    def test_execute_query(self, user_base_repository, stored_user):
        rows = user_base_repository.execute_query(
            "SELECT id, email FROM users WHERE email = :email",
            {"email": "stored@x.com"},
        )

        assert rows == [{"id": stored_user.id, "email": "stored@x.com"}]

    def test_execute_query_missing_parameter_is_unknown_failure(self, user_base_repository):
        with pytest.raises(DatabaseException):
            user_base_repository.execute_query("SELECT id FROM users WHERE email = :email")


class TestBaseRepositoryUpdate:
    """Tests for updating entities."""

    def test_update_returns_persisted_state(self, user_base_repository, stored_user):
        updated = user_base_repository.update(
            UserORM(id=stored_user.id, name="Renamed", email="renamed@x.com")
        )

        assert updated.id == stored_user.id
        assert updated.name == "Renamed"
        assert updated.email == "renamed@x.com"
        assert updated.created_at == stored_user.created_at

        reread = user_base_repository.find_by_id(stored_user.id)
        assert reread.name == "Renamed"

    def test_update_keeps_attributes_not_provided(self, user_base_repository):
        created = user_base_repository.create(UserORM(name="Ana", email="ana@x.com", password="s$h"))

        updated = user_base_repository.update(UserORM(id=created.id, name="Ana B", email="ana@x.com"))

        assert updated.password == "s$h"

    def test_update_missing_identity_raises_not_found(self, user_base_repository):
        with pytest.raises(NotFoundException):
            user_base_repository.update(UserORM(id=424242, name="Ghost", email="ghost@x.com"))

        assert user_base_repository.count() == 0

    def test_update_without_identity_is_validation_failure(self, user_base_repository):
        with pytest.raises(ValidationException):
            user_base_repository.update(UserORM(name="No id", email="noid@x.com"))

    def test_update_to_duplicate_email_raises_conflict(self, user_base_repository, stored_user):
        other = user_base_repository.create(UserORM(name="Other", email="other@x.com"))

        with pytest.raises(ConflictException):
            user_base_repository.update(UserORM(id=other.id, name="Other", email=stored_user.email))


class TestBaseRepositoryDelete:
    """Tests for deleting entities."""

    def test_delete_removes_entity(self, user_base_repository, stored_user):
        user_base_repository.delete(stored_user.id)

        with pytest.raises(NotFoundException):
            user_base_repository.find_by_id(stored_user.id)

    def test_delete_twice_does_not_raise(self, user_base_repository, stored_user):
        user_base_repository.delete(stored_user.id)
        user_base_repository.delete(stored_user.id)

    def test_delete_missing_identity_does_not_raise(self, user_base_repository):
        user_base_repository.delete(999999)


class TestBaseRepositoryPaginate:
    """Tests for pagination."""

    def test_third_page_of_25(self, user_base_repository, many_users):
        options = PaginationOptions(limit=10, page=3)

        result = user_base_repository.paginate(options)
        pagination = user_base_repository.paginate_range(result.total, options.limit, options.page)

        assert len(result.entities) == 5
        assert result.total == 25
        assert pagination.model_dump() == {
            "total_items": 25,
            "total_pages": 3,
            "current_page": 3,
            "items_per_page": 10,
        }

    def test_page_beyond_range_is_empty_not_error(self, user_base_repository):
        for i in range(5):
            user_base_repository.create(UserORM(name=f"U{i}", email=f"u{i}@x.com"))

        result = user_base_repository.paginate(PaginationOptions(page=99, limit=10))

        assert result.entities == []
        assert result.total == 5

    def test_default_options(self, user_base_repository, many_users):
        result = user_base_repository.paginate()

        assert len(result.entities) == 10
        assert result.total == 25

    def test_pages_are_disjoint_and_stable(self, user_base_repository, many_users):
        pages = [
            user_base_repository.paginate(PaginationOptions(limit=10, page=page)).entities
            for page in (1, 2, 3)
        ]
        ids = [u.id for page in pages for u in page]

        assert ids == sorted(u.id for u in many_users)

    def test_empty_store_short_circuits(self, user_base_repository, db_engine):
        user_base_repository.ensure_connection()
        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(db_engine, "before_cursor_execute", record)
        try:
            result = user_base_repository.paginate(PaginationOptions(limit=10, page=1))
        finally:
            event.remove(db_engine, "before_cursor_execute", record)

        assert result.entities == []
        assert result.total == 0
        assert len(statements) == 1
        assert "count" in statements[0].lower()

    def test_non_empty_page_issues_count_and_select(self, user_base_repository, db_engine, stored_user):
        statements = []

        def record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(db_engine, "before_cursor_execute", record)
        try:
            result = user_base_repository.paginate()
        finally:
            event.remove(db_engine, "before_cursor_execute", record)

        assert result.total == 1
        assert len(statements) == 2

    def test_where_filter(self, user_base_repository, many_users):
        result = user_base_repository.paginate(PaginationOptions(where={"email": "user07@x.com"}))

        assert result.total == 1
        assert result.entities[0].name == "User 07"

    def test_sort_descending(self, user_base_repository, many_users):
        result = user_base_repository.paginate(
            PaginationOptions(sort="email", order=SortOrder.DESC, limit=3)
        )

        assert [u.email for u in result.entities] == ["user24@x.com", "user23@x.com", "user22@x.com"]

    def test_sort_ascending_by_name(self, user_base_repository, many_users):
        result = user_base_repository.paginate(PaginationOptions(sort="name", order="asc", limit=2, page=2))

        assert [u.name for u in result.entities] == ["User 02", "User 03"]

    def test_field_selection_loads_only_requested_fields(self, user_base_repository, many_users):
        result = user_base_repository.paginate(PaginationOptions(limit=1), fields=["email"])

        entity = result.entities[0]
        state = sa_inspect(entity)
        assert entity.email == "user00@x.com"
        assert "name" in state.unloaded
        assert "id" not in state.unloaded

    @pytest.mark.parametrize(
        "options,fields",
        [
            (PaginationOptions(sort="nickname"), None),
            (PaginationOptions(where={"nickname": "x"}), None),
            (PaginationOptions(), ["nickname"]),
        ],
    )
    def test_unknown_fields_raise_validation(self, user_base_repository, options, fields):
        with pytest.raises(ValidationException):
            user_base_repository.paginate(options, fields)


class TestBaseRepositoryConstruction:

    def test_implements_contract(self, user_base_repository):
        assert isinstance(user_base_repository, RepositoryContract)

    def test_starts_uninitialized_and_becomes_ready(self, user_base_repository):
        assert user_base_repository.state is ConnectionState.UNINITIALIZED

        user_base_repository.find_all()

        assert user_base_repository.state is ConnectionState.READY

    def test_model_without_identity_is_rejected(self, database):
        from sqlalchemy import Column, String
        from sqlalchemy.orm import declarative_base

        OtherBase = declarative_base()

        class Tag(OtherBase):
            __tablename__ = "tags"
            code = Column(String(10), primary_key=True)

        with pytest.raises(ValueError):
            BaseRepository(database, Tag)

    def test_identity_cannot_be_hidden(self, database):
        with pytest.raises(ValueError):
            BaseRepository(database, UserORM, hidden_fields={"id"})

    def test_hidden_fields_are_unknown_to_queries(self, database, many_users):
        repository = BaseRepository(database, UserORM, hidden_fields={"name"})

        with pytest.raises(ValidationException):
            repository.find_one_by(name="User 01")
        assert repository.find_one_by(email="user01@x.com").name == "User 01"
