# onestore/schemas/user.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, ConfigDict, field_validator
from sqlmodel import Field

from onestore.schemas.common import ApiModel

# App-level roles. "guest" = no token, so we don't store it here.
Role = Literal["user", "admin"]


def _strip_or_none(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class UserDataRead(ApiModel):
    id: uuid.UUID
    user_id: uuid.UUID
    role: Role
    address: str | None
    phone: str | None
    created_at: datetime


class UserRead(ApiModel):
    """Response schema returned to clients, with joined user data."""

    id: uuid.UUID
    name: str
    email: str
    email_verified: bool
    image: str | None
    created_at: datetime
    updated_at: datetime
    user_data: UserDataRead | None = None


class UserDataWrite(ApiModel):
    model_config = ConfigDict(extra="forbid")

    role: Role = "user"
    address: str | None = None
    phone: str | None = None

    @field_validator("address", "phone")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class UserCreate(ApiModel):
    """
    Admin payload for creating a user and (optionally) its user data.
    """

    model_config = ConfigDict(extra="forbid")

    id: uuid.UUID | None = None
    name: str = Field(max_length=50)
    email: EmailStr
    email_verified: bool = False
    image: str | None = None
    user_data: UserDataWrite | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class UserUpdate(ApiModel):
    """
    Admin update payload.

    Identity fields (name, email, image, emailVerified) replace the
    User row. If any of role/phone/address is given, UserData is
    upserted.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=50)
    email: EmailStr
    image: str | None = None
    email_verified: bool = False
    role: Role | None = None
    phone: str | None = None
    address: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("phone", "address")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class ProfileUpdate(ApiModel):
    """
    Self-service profile edit: display name plus shipping details.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    address: str | None = None
    phone: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2 or len(v) > 50:
            raise ValueError("Username must be between 2 and 50 characters.")
        return v

    @field_validator("address", "phone")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class AuthCheck(ApiModel):
    is_authenticated: bool
    user: UserRead | None = None
