# onestore/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """
    Identity record mirrored from the auth provider.

    Identity:
      - id: MUST match the auth user id (UUID from JWT "sub")

    This table is *not* responsible for password hashes or sessions;
    the auth provider keeps those. Role and contact details live in
    UserData.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
        description="Matches the auth provider user id",
    )

    name: str = Field(
        description="Display name; first part of email by default",
    )

    email: str = Field(
        unique=True,
        index=True,
    )

    email_verified: bool = Field(default=False)

    image: str | None = Field(
        default=None,
        description="Avatar URL",
    )

    created_at: datetime = Field(
        default_factory=_utcnow,
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column_kwargs={"onupdate": _utcnow},
    )


class UserData(SQLModel, table=True):
    """
    Out-of-band profile data keyed by user id.

    Role:
      - "user" | "admin" (defaults to "user")
      - a user without a row is treated as "user"
    """

    __tablename__ = "user_data"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        ondelete="CASCADE",
        unique=True,
        index=True,
    )

    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    address: str | None = None
    phone: str | None = None

    created_at: datetime = Field(
        default_factory=_utcnow,
    )
