"""FastAPI authentication dependencies for dashboard routes."""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import ACCESS, decode_token
from app.database import get_db
from app.models.user import User

# Strict bearer — rejects the request if no token is provided
_bearer_scheme = HTTPBearer()

# Optional bearer — returns None if no token provided
_bearer_scheme_optional = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession) -> User | None:
    """Resolve an access token to an active user, or None."""
    try:
        payload = decode_token(token, expected_type=ACCESS)
        user_id = uuid.UUID(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return the authenticated administrator.

    Raises:
        HTTPException 401: If the token is invalid, expired, of the wrong
            type, or the user is missing or inactive.
    """
    user = await _user_from_token(credentials.credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_active_user(
    user: User = Depends(get_current_user),
) -> User:
    """Return the current user only if their account is active.

    Raises:
        HTTPException 403: If the user account is inactive.
    """
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme_optional),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Optionally authenticate a user from a Bearer token.

    Returns ``None`` instead of raising when no or an invalid token is given.
    """
    if credentials is None:
        return None
    return await _user_from_token(credentials.credentials, db)
