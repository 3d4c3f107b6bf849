# onestore/core/auth.py
import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyCookie, HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlmodel import Session, select

from onestore.core.config import get_settings
from onestore.database import get_session
from onestore.models.user import User, UserData

settings = get_settings()

# auto_error=False on both schemes => a missing token does NOT raise
# immediately so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=settings.SESSION_COOKIE_NAME, auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token (JWT) issued by the auth provider.

    Verification:
      - signature (SUPABASE_JWT_ALG using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified ('aud' may vary)

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.SUPABASE_JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _default_name_from_email(email: str) -> str:
    """
    Derive a default display name from email if the user has not
    completed their profile yet.
    """
    if "@" in email:
        return email.split("@", 1)[0]
    return email


def is_admin(session: Session, user_id: uuid.UUID | None) -> bool:
    """
    Single capability check: does this identity hold the admin role?

    A user without a UserData row is a regular user.
    """
    if user_id is None:
        return False
    stmt = select(UserData.role).where(UserData.user_id == user_id)
    role = session.exec(stmt).first()
    return role == "admin"


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    cookie_token: str | None = Depends(cookie_scheme),
    session: Session = Depends(get_session),
) -> User | None:
    """
    Resolve the current user from the bearer header or the session cookie.

    Flow:
      1. No token at all => guest => return None.
      2. Decode JWT => extract 'sub' (auth user id) and 'email'.
      3. Convert 'sub' to UUID to match User.id type.
      4. Find the user row; auto-provision a minimal one if missing.

    Raises:
        HTTPException(401): if token is malformed or missing required claims.
    """
    token = credentials.credentials if credentials is not None else cookie_token
    if not token:
        return None  # guest mode

    payload = decode_access_token(token)
    sub = payload.get("sub")
    email = payload.get("email")

    if not sub or not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub/email",
        )

    try:
        sub_uuid = uuid.UUID(sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid sub in token",
        )

    user = session.get(User, sub_uuid)

    # Auto-provision on first sight. Role defaults to "user"
    # (no UserData row); admins are promoted through /users.
    if user is None:
        user = User(
            id=sub_uuid,
            email=email,
            name=payload.get("name") or _default_name_from_email(email),
            email_verified=bool(payload.get("email_verified", False)),
        )
        session.add(user)
        session.commit()
        session.refresh(user)

    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """
    Enforce authentication.

    Raises:
        HTTPException(401): if user is None.
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return user


def require_admin(
    user: User = Depends(require_auth),
    session: Session = Depends(get_session),
) -> User:
    """
    Enforce admin role at the entry of every admin operation.

    Raises:
        HTTPException(403): if role is not admin.
    """
    if not is_admin(session, user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
