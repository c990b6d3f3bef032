"""Pydantic models for authentication domain."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from eventplan.auth.passwords import PASSWORD_MIN_LENGTH, PASSWORD_STRENGTH_HINT

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserRecord(BaseModel):
    """Persisted user model, including the password hash."""

    user_id: str
    email: str
    display_name: str | None = None
    password_hash: str
    created_at: datetime
    updated_at: datetime

    def to_public(self) -> "PublicUser":
        """Return the projection that is safe to hand to callers."""
        return PublicUser(
            user_id=self.user_id,
            email=self.email,
            display_name=self.display_name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class PublicUser(BaseModel):
    """User projection without credentials."""

    user_id: str
    email: str
    display_name: str | None = None
    created_at: datetime
    updated_at: datetime


class RefreshTokenRecord(BaseModel):
    """Refresh token persistence record; only the token hash is stored."""

    token_id: str
    user_id: str
    token_hash: str
    expires_at: datetime
    created_at: datetime
    last_used_at: datetime | None = None
    revoked_at: datetime | None = None


class AccessTokenClaims(BaseModel):
    """Identity claims embedded into an access token."""

    sub: str
    email: str
    display_name: str | None = None


class AccessTokenPayload(AccessTokenClaims):
    """Verified access token payload."""

    iat: int | float
    exp: int | float

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON object placed in the token payload segment."""
        return {
            "sub": self.sub,
            "email": self.email,
            "displayName": self.display_name,
            "iat": self.iat,
            "exp": self.exp,
        }


class AuthenticatedUser(BaseModel):
    """Identity resolved from a verified access token."""

    user_id: str
    email: str
    display_name: str | None = None


class AuthTokens(BaseModel):
    """Access/refresh token pair with absolute expiry timestamps."""

    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime


class AuthResult(BaseModel):
    """Outcome of register, login and refresh flows."""

    user: PublicUser
    tokens: AuthTokens


class LoginRequest(BaseModel):
    """Login request payload."""

    email: str = Field(min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    """Registration request payload."""

    email: str = Field(min_length=3, max_length=320, pattern=EMAIL_PATTERN)
    password: str = Field(
        min_length=PASSWORD_MIN_LENGTH, description=PASSWORD_STRENGTH_HINT
    )
    display_name: str | None = Field(default=None, min_length=1)


class RefreshRequest(BaseModel):
    """Refresh/logout request payload; the cookie is used when omitted."""

    refresh_token: str | None = None


class ChangePasswordRequest(BaseModel):
    """Password change payload for an authenticated user."""

    current_password: str = Field(min_length=1)
    new_password: str = Field(
        min_length=PASSWORD_MIN_LENGTH, description=PASSWORD_STRENGTH_HINT
    )
