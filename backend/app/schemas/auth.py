"""Schemas for dashboard administrator authentication.

Only administrators have accounts; guests and visitors book anonymously.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Administrator registration.

    The first registration on an empty store bootstraps the first
    administrator; after that only a signed-in administrator may add another.
    """

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=1, max_length=255)


class LoginRequest(BaseModel):
    """Administrator email/password login."""

    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    """Exchange a refresh token for a new access/refresh pair."""

    refresh_token: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Access and refresh JWTs; the access token carries the administrator role."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Administrator profile as shown in the dashboard."""

    id: uuid.UUID
    email: str
    name: str
    is_active: bool
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Administrator and tokens, returned on register and login."""

    user: UserResponse
    tokens: TokenResponse


class MessageResponse(BaseModel):
    """Plain confirmation, e.g. after a delete."""

    message: str
