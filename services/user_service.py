"""
Service for User business logic.

Each use case returns a ResponseEnvelope: a success envelope with the mapped
data, or an error envelope built from the typed exception raised below.
"""

from typing import Any, Dict, Optional, Union
import logging

from repositories.user_repository import UserRepository
from database.models import UserORM
from database.db import hash_password
from models.users import User, UserCreate, UserUpdate
from models.common import (
    ResponseEnvelope,
    success_response,
    error_response_from_exception,
)
from core.exceptions import AppException, ConflictException
from core.pagination import DEFAULT_LIMIT, PaginationOptions, coerce_positive_int

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing user use cases."""

    def __init__(self, repository: UserRepository, default_page_size: int = DEFAULT_LIMIT):
        """
        Initialize user service.

        Args:
            repository: UserRepository instance
            default_page_size: Items per page when limit is missing or invalid
        """
        self.repository = repository
        self.default_page_size = default_page_size

    def create_user(self, payload: UserCreate) -> ResponseEnvelope:
        """
        Create a new user.

        Returns:
            Envelope with the created user (201) or a 409 error if the email exists
        """
        logger.info("UserService.create_user processing")
        try:
            created = self.repository.create(self._to_entity(payload))
            logger.info(f"User {created.id} ({created.email}) created")
            return success_response(data=self._to_dict(created), status_code=201)
        except AppException as e:
            logger.error(f"UserService.create_user error: {e.message}")
            return error_response_from_exception(e)

    def get_user(self, user_id: int) -> ResponseEnvelope:
        """Get a user by ID; 404 envelope when it does not exist."""
        logger.info("UserService.get_user processing")
        try:
            user = self.repository.find_by_id(user_id)
            return success_response(data=self._to_dict(user))
        except AppException as e:
            logger.error(f"UserService.get_user error: {e.message}")
            return error_response_from_exception(e)

    def list_users(
        self,
        page: Optional[Union[int, str]] = None,
        limit: Optional[Union[int, str]] = None,
        sort: Optional[str] = None,
        order: Optional[str] = None,
    ) -> ResponseEnvelope:
        """
        List users page by page.

        page and limit are coerced to positive integers; invalid values fall
        back to page 1 and default_page_size items per page.
        """
        logger.info("UserService.list_users processing")
        limit = coerce_positive_int(limit, self.default_page_size)
        options = PaginationOptions(page=page, limit=limit, sort=sort, order=order)
        try:
            result = self.repository.paginate(options)
            pagination = self.repository.paginate_range(
                total=result.total, limit=options.limit, page=options.page
            )
            data = [self._to_dict(user) for user in result.entities]
            return success_response(data=data, pagination=pagination)
        except AppException as e:
            logger.error(f"UserService.list_users error: {e.message}")
            return error_response_from_exception(e)

    def update_user(self, user_id: int, payload: UserUpdate) -> ResponseEnvelope:
        """
        Replace a user's data.

        Returns:
            Envelope with the persisted user, 404 if it does not exist,
            409 if the email belongs to another user
        """
        logger.info("UserService.update_user processing")
        try:
            if self.repository.exists_email(payload.email, exclude_id=user_id):
                raise ConflictException("User already exists.", details={"field": "email"})

            entity = self._to_entity(payload)
            entity.id = user_id
            updated = self.repository.update(entity)
            return success_response(data=self._to_dict(updated), message="User updated.")
        except AppException as e:
            logger.error(f"UserService.update_user error: {e.message}")
            return error_response_from_exception(e)

    def delete_user(self, user_id: int) -> ResponseEnvelope:
        """Delete a user. Deleting a missing user is not an error."""
        logger.info("UserService.delete_user processing")
        try:
            self.repository.delete(user_id)
            return success_response(data=None, message="User deleted successfully")
        except AppException as e:
            logger.error(f"UserService.delete_user error: {e.message}")
            return error_response_from_exception(e)

    # ==================== Mapping ====================

    @staticmethod
    def _to_entity(payload: Union[UserCreate, UserUpdate]) -> UserORM:
        entity = UserORM(name=payload.name, email=payload.email)
        # sin password no se asigna el atributo, así update no lo sobrescribe
        if payload.password:
            entity.password = hash_password(payload.password)
        return entity

    @staticmethod
    def _to_dict(entity: UserORM) -> Dict[str, Any]:
        return User.model_validate(entity).model_dump(mode="json", by_alias=True)
