"""Typed failures raised by the authentication core.

Every error carries a stable ``reason`` so the HTTP layer can log the exact
cause while answering callers with a generic per-category message.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for authentication core failures."""

    reason = "auth_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.reason)


class EmailConflictError(AuthError):
    """Email is already registered."""

    reason = "email_conflict"


class AuthenticationError(AuthError):
    """Caller could not be authenticated."""

    reason = "unauthenticated"


class InvalidCredentialsError(AuthenticationError):
    """Unknown email or wrong password; deliberately indistinguishable."""

    reason = "invalid_credentials"


class CurrentPasswordMismatchError(InvalidCredentialsError):
    """Password change was attempted with a wrong current password."""

    reason = "current_password_mismatch"


class AccessTokenError(AuthenticationError):
    """Access token was rejected."""

    reason = "access_token_invalid"


class TokenFormatError(AccessTokenError):
    reason = "token_format"


class UnsupportedAlgorithmError(AccessTokenError):
    reason = "token_unsupported_algorithm"


class BadSignatureError(AccessTokenError):
    reason = "token_bad_signature"


class InvalidPayloadError(AccessTokenError):
    reason = "token_invalid_payload"


class AccessTokenExpiredError(AccessTokenError):
    reason = "token_expired"


class RefreshTokenError(AuthenticationError):
    """Refresh token was rejected."""

    reason = "refresh_token_invalid"


class MissingRefreshTokenError(RefreshTokenError):
    reason = "refresh_token_missing"


class InvalidRefreshTokenError(RefreshTokenError):
    """Refresh token is unknown or already revoked."""

    reason = "refresh_token_invalid"


class RefreshTokenExpiredError(RefreshTokenError):
    reason = "refresh_token_expired"


class UserNotFoundError(RefreshTokenError):
    """Refresh token owner no longer exists."""

    reason = "refresh_token_user_missing"
