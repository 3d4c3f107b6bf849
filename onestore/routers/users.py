# onestore/routers/users.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from onestore.core.auth import require_admin
from onestore.database import get_session
from onestore.repositories.user_repo import UserRepository
from onestore.schemas.common import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    ApiResponse,
    PaginatedResponse,
    Pagination,
)
from onestore.schemas.user import UserCreate, UserRead, UserUpdate
from onestore.services.user_service import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(require_admin)],
)

repo = UserRepository()
service = UserService(repo)


@router.get("", response_model=PaginatedResponse[UserRead])
def list_users(
    session: Session = Depends(get_session),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    """
    List all users with their user data, newest first (admin only).
    """
    users, total = service.list_users(session, skip=(page - 1) * limit, limit=limit)
    return PaginatedResponse[UserRead](
        data=users,
        pagination=Pagination.build(page, limit, total),
    )


@router.post(
    "",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
)
def create_user(
    payload: UserCreate,
    session: Session = Depends(get_session),
):
    """
    Create a user and optional user data (admin only).
    """
    return ApiResponse[UserRead](
        data=service.create_user(session, payload),
        message="User created successfully",
    )


@router.get("/{user_id}", response_model=ApiResponse[UserRead])
def get_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get a specific user by id (admin only).
    """
    return ApiResponse[UserRead](data=service.get_user_read(session, user_id))


@router.put("/{user_id}", response_model=ApiResponse[UserRead])
def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    session: Session = Depends(get_session),
):
    """
    Update identity fields and upsert role/phone/address (admin only).
    """
    return ApiResponse[UserRead](
        data=service.update_user(session, user_id, payload),
        message="User updated successfully",
    )


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Delete a user (admin only). Admin accounts cannot be deleted.
    """
    service.delete_user(session, user_id)
    return ApiResponse[None](message="User deleted successfully")
