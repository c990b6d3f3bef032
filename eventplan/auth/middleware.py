"""Resolve the caller identity from a bearer header or the access cookie."""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Request

from eventplan.api.errors import ApiError, ApiErrorCode
from eventplan.auth.cookies import ACCESS_TOKEN_COOKIE
from eventplan.auth.errors import AccessTokenError
from eventplan.auth.models import AuthenticatedUser
from eventplan.auth.service import AuthService

LOGGER = logging.getLogger(__name__)


def extract_access_token(request: Request) -> str:
    """Return the bearer token, falling back to the access-token cookie."""
    parts = request.headers.get("authorization", "").strip().split(" ", 1)
    if len(parts) == 2 and parts[0].lower() == "bearer" and parts[1].strip():
        return parts[1].strip()
    return request.cookies.get(ACCESS_TOKEN_COOKIE, "")


def create_auth_middleware(service: AuthService) -> Callable:
    """Create middleware that attaches ``request.state.auth_user`` when possible.

    Requests without a usable token pass through unauthenticated; routes that
    need an identity depend on ``require_auth_user``.
    """

    async def auth_middleware(request: Request, call_next: Callable):
        request.state.auth_user = None
        token = extract_access_token(request)
        if token:
            try:
                request.state.auth_user = service.authenticate(token)
            except AccessTokenError as exc:
                LOGGER.warning(
                    "access_token_rejected",
                    extra={"path": request.url.path, "reason": exc.reason},
                )
        return await call_next(request)

    return auth_middleware


def get_optional_user(request: Request) -> AuthenticatedUser | None:
    return getattr(request.state, "auth_user", None)


def require_auth_user(request: Request) -> AuthenticatedUser:
    """FastAPI dependency rejecting requests without a verified identity."""
    user = get_optional_user(request)
    if user is None:
        raise ApiError(
            status_code=401,
            error_code=ApiErrorCode.AUTH_UNAUTHORIZED,
            message="Unauthorized",
        )
    return user
