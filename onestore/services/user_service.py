# onestore/services/user_service.py
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from onestore.models.user import User, UserData
from onestore.repositories.user_repo import UserRepository
from onestore.schemas.user import (
    ProfileUpdate,
    UserCreate,
    UserDataRead,
    UserRead,
    UserUpdate,
)

EMAIL_CONFLICT = "A user with this email already exists"


class UserService:
    """
    Business logic for User + UserData.

    Responsibilities:
      - two-part writes (identity on User, role/contact on UserData)
      - email uniqueness
      - admin accounts cannot be deleted
      - map domain errors to HTTP errors
    """

    def __init__(self, repo: UserRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def to_read(user: User, data: UserData | None) -> UserRead:
        read = UserRead.model_validate(user)
        read.user_data = UserDataRead.model_validate(data) if data else None
        return read

    def _read(self, session: Session, user: User) -> UserRead:
        return self.to_read(user, self.repo.get_data(session, user.id))

    def _upsert_data(
        self,
        session: Session,
        user_id: uuid.UUID,
        *,
        role: str | None = None,
        address: str | None = None,
        phone: str | None = None,
        partial: bool = False,
    ) -> UserData:
        """
        Insert-if-absent, else update, keyed by user id. Does not commit.

        A role of None keeps the stored role ("user" for new rows).
        With partial=True, address/phone left as None keep their
        stored values.
        """
        data = self.repo.get_data(session, user_id)
        if data is None:
            data = UserData(user_id=user_id, role=role or "user")
        elif role is not None:
            data.role = role
        if address is not None or not partial:
            data.address = address
        if phone is not None or not partial:
            data.phone = phone
        return self.repo.add_data(session, data)

    def _ensure_email_free(
        self,
        session: Session,
        email: str,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        existing = self.repo.get_by_email(session, email)
        if existing is not None and existing.id != exclude_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT)

    # ----- Self profile -----

    def get_profile_data(self, session: Session, current_user: User) -> UserData | None:
        return self.repo.get_data(session, current_user.id)

    def update_profile(
        self,
        session: Session,
        current_user: User,
        payload: ProfileUpdate,
    ) -> UserRead:
        """
        Update the display name and upsert address/phone.
        The role is never touched here.
        """
        current_user.name = payload.name
        session.add(current_user)
        self._upsert_data(
            session,
            current_user.id,
            address=payload.address,
            phone=payload.phone,
        )
        session.commit()
        session.refresh(current_user)
        return self._read(session, current_user)

    # ----- Admin operations -----

    def list_users(
        self, session: Session, skip: int, limit: int
    ) -> tuple[list[UserRead], int]:
        """List users with their data, plus the total count."""
        rows = self.repo.list_with_data(session, skip=skip, limit=limit)
        return [self.to_read(u, d) for u, d in rows], self.repo.count(session)

    def get_user(self, session: Session, user_id: uuid.UUID) -> User:
        """
        Raises:
            HTTPException(404): if not found.
        """
        user = self.repo.get_by_id(session, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return user

    def get_user_read(self, session: Session, user_id: uuid.UUID) -> UserRead:
        return self._read(session, self.get_user(session, user_id))

    def create_user(self, session: Session, payload: UserCreate) -> UserRead:
        """
        Create a user and, when given, its user data in one transaction.
        """
        self._ensure_email_free(session, payload.email)

        user = User(
            id=payload.id or uuid.uuid4(),
            name=payload.name,
            email=payload.email,
            email_verified=payload.email_verified,
            image=payload.image,
        )
        try:
            self.repo.add(session, user)
            if payload.user_data is not None:
                self._upsert_data(
                    session,
                    user.id,
                    role=payload.user_data.role,
                    address=payload.user_data.address,
                    phone=payload.user_data.phone,
                )
            session.commit()
        except IntegrityError:
            session.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT)

        session.refresh(user)
        return self._read(session, user)

    def update_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: UserUpdate,
    ) -> UserRead:
        """
        Two-part write:
          - name, email, image, emailVerified replace the User fields
          - role/phone/address upsert UserData, only if any is given
        """
        user = self.get_user(session, user_id)
        self._ensure_email_free(session, payload.email, exclude_id=user.id)

        user.name = payload.name
        user.email = payload.email
        user.image = payload.image
        user.email_verified = payload.email_verified
        session.add(user)

        if payload.role or payload.phone or payload.address:
            self._upsert_data(
                session,
                user.id,
                role=payload.role,
                address=payload.address,
                phone=payload.phone,
                partial=True,
            )

        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT)

        session.refresh(user)
        return self._read(session, user)

    def delete_user(self, session: Session, user_id: uuid.UUID) -> None:
        """
        Delete UserData first, then the User.
        Admin accounts are refused.
        """
        user = self.get_user(session, user_id)
        data = self.repo.get_data(session, user.id)
        if data is not None and data.role == "admin":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin accounts cannot be deleted",
            )

        self.repo.delete_data(session, user.id)
        self.repo.delete(session, user)
        session.commit()
