"""Auth cookie helpers for browser clients."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from fastapi import Response

from eventplan.auth.models import AuthTokens

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"


def _remaining_seconds(expires_at: datetime, now: datetime) -> int:
    return max(0, math.floor((expires_at - now).total_seconds()))


def apply_auth_cookies(
    response: Response,
    tokens: AuthTokens,
    *,
    secure: bool = True,
    now: datetime | None = None,
) -> None:
    """Set both token cookies with ``Max-Age`` matching each token's expiry."""
    current = now or datetime.now(timezone.utc)
    for name, value, expires_at in (
        (ACCESS_TOKEN_COOKIE, tokens.access_token, tokens.access_token_expires_at),
        (REFRESH_TOKEN_COOKIE, tokens.refresh_token, tokens.refresh_token_expires_at),
    ):
        response.set_cookie(
            name,
            value,
            max_age=_remaining_seconds(expires_at, current),
            path="/",
            secure=secure,
            httponly=True,
            samesite="strict",
        )


def clear_auth_cookies(response: Response, *, secure: bool = True) -> None:
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            name, path="/", secure=secure, httponly=True, samesite="strict"
        )
