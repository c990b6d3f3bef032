"""Pydantic API response models used in OpenAPI contracts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from eventplan.auth.models import AuthenticatedUser, AuthTokens, PublicUser


class ApiErrorResponse(BaseModel):
    """Stable error envelope for API responses."""

    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")


class HealthResponse(BaseModel):
    """Health check response payload."""

    status: Literal["ok"]


class AuthResponse(BaseModel):
    """Register/login/refresh response: safe user projection plus tokens."""

    user: PublicUser
    tokens: AuthTokens


class AuthMeResponse(BaseModel):
    """Current user endpoint response payload."""

    user: AuthenticatedUser
