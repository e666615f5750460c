"""
User routes (Controllers) - Layered Architecture.

This module handles HTTP requests/responses for user endpoints.
All business logic is delegated to the UserService layer; every endpoint
answers with the envelope's status code and camelCase body.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from dependencies import get_user_service
from models.common import ResponseEnvelope
from models.users import UserCreate, UserUpdate
from services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def to_json_response(envelope: ResponseEnvelope) -> JSONResponse:
    """Serialize an envelope using its own status code."""
    return JSONResponse(status_code=envelope.status_code, content=envelope.to_wire())


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
):
    """Create a new user. Returns 409 if the email is already registered."""
    return to_json_response(service.create_user(payload))


@router.get("/")
def list_users(
    page: Optional[str] = Query(None, description="Page number (1-indexed)"),
    limit: Optional[str] = Query(None, description="Items per page"),
    sort: Optional[str] = Query(None, description="Field to sort by"),
    order: Optional[str] = Query(None, description="ASC or DESC"),
    service: UserService = Depends(get_user_service),
):
    """
    List users with pagination.

    Invalid page/limit values fall back to page 1 and the configured page size.
    """
    return to_json_response(service.list_users(page=page, limit=limit, sort=sort, order=order))


@router.get("/{user_id}")
def get_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
):
    return to_json_response(service.get_user(user_id))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    service: UserService = Depends(get_user_service),
):
    return to_json_response(service.update_user(user_id, payload))


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
):
    """Delete a user. Repeated deletes of the same id also answer 200."""
    return to_json_response(service.delete_user(user_id))
