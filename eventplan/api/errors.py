"""Shared API error types and helpers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fastapi import HTTPException

from eventplan.auth.errors import (
    AccessTokenError,
    AuthError,
    CurrentPasswordMismatchError,
    EmailConflictError,
    InvalidCredentialsError,
    MissingRefreshTokenError,
    RefreshTokenError,
)


class ApiErrorCode(StrEnum):
    """Machine-readable API error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_EMAIL_CONFLICT = "AUTH_EMAIL_CONFLICT"
    AUTH_UNAUTHORIZED = "AUTH_UNAUTHORIZED"
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ApiError(HTTPException):
    """HTTP exception carrying stable API error envelope."""

    def __init__(
        self, *, status_code: int, error_code: ApiErrorCode, message: str
    ) -> None:
        super().__init__(
            status_code=status_code,
            detail={"error_code": str(error_code), "message": message},
        )


def to_error_payload(detail: Any, status_code: int) -> dict[str, str]:
    """Normalize HTTP exception detail into stable error payload."""
    if isinstance(detail, dict):
        error_code = str(detail.get("error_code") or f"HTTP_{status_code}")
        message = str(detail.get("message") or detail.get("detail") or "HTTP error")
        return {"error_code": error_code, "message": message}
    return {
        "error_code": f"HTTP_{status_code}",
        "message": str(detail or "HTTP error"),
    }


def api_error_from_auth_error(exc: AuthError) -> ApiError:
    """Map a domain failure onto its public status code and generic message."""
    if isinstance(exc, EmailConflictError):
        return ApiError(
            status_code=409,
            error_code=ApiErrorCode.AUTH_EMAIL_CONFLICT,
            message="Email already registered",
        )
    if isinstance(exc, CurrentPasswordMismatchError):
        return ApiError(
            status_code=401,
            error_code=ApiErrorCode.AUTH_INVALID_CREDENTIALS,
            message="Current password is incorrect",
        )
    if isinstance(exc, InvalidCredentialsError):
        return ApiError(
            status_code=401,
            error_code=ApiErrorCode.AUTH_INVALID_CREDENTIALS,
            message="Invalid email or password",
        )
    if isinstance(exc, MissingRefreshTokenError):
        return ApiError(
            status_code=401,
            error_code=ApiErrorCode.AUTH_MISSING_TOKEN,
            message="Refresh token is required",
        )
    if isinstance(exc, RefreshTokenError):
        return ApiError(
            status_code=401,
            error_code=ApiErrorCode.AUTH_TOKEN_INVALID,
            message="Refresh token is invalid",
        )
    if isinstance(exc, AccessTokenError):
        return ApiError(
            status_code=401,
            error_code=ApiErrorCode.AUTH_TOKEN_INVALID,
            message="Invalid or expired access token",
        )
    return ApiError(
        status_code=401,
        error_code=ApiErrorCode.AUTH_UNAUTHORIZED,
        message="Unauthorized",
    )
