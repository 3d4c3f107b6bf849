# onestore/routers/profile.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from onestore.core.auth import get_current_user, require_auth
from onestore.database import get_session
from onestore.models.user import User
from onestore.repositories.user_repo import UserRepository
from onestore.schemas.common import ApiResponse
from onestore.schemas.user import AuthCheck, ProfileUpdate, UserDataRead, UserRead
from onestore.services.user_service import UserService

router = APIRouter(tags=["Profile"])

repo = UserRepository()
service = UserService(repo)


@router.get("/auth/check", response_model=ApiResponse[AuthCheck])
def check_auth(
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_current_user),
):
    """
    Report whether the caller is signed in. Guests get
    isAuthenticated=false rather than an error.
    """
    user = None
    if current_user is not None:
        user = service.to_read(current_user, service.get_profile_data(session, current_user))
    return ApiResponse[AuthCheck](
        data=AuthCheck(is_authenticated=current_user is not None, user=user)
    )


@router.get("/user-data", response_model=ApiResponse[UserDataRead | None])
def read_my_user_data(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Return the caller's user data (role, address, phone) or null.
    Used to check for a shipping address before checkout.
    """
    data = service.get_profile_data(session, current_user)
    return ApiResponse[UserDataRead | None](
        data=UserDataRead.model_validate(data) if data else None
    )


@router.put("/user-data", response_model=ApiResponse[UserRead])
def update_my_profile(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Update display name, shipping address and phone.
    """
    return ApiResponse[UserRead](
        data=service.update_profile(session, current_user, payload),
        message="Profile updated successfully!",
    )
