"""Authentication API router."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from eventplan.api.contracts import ApiErrorResponse, AuthMeResponse, AuthResponse
from eventplan.auth.cookies import REFRESH_TOKEN_COOKIE, apply_auth_cookies, clear_auth_cookies
from eventplan.auth.middleware import require_auth_user
from eventplan.auth.models import (
    AuthenticatedUser,
    AuthResult,
    ChangePasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from eventplan.auth.service import AuthService
from eventplan.core.config import AuthConfig

# Refresh/logout read their body by hand, so document it explicitly.
_OPTIONAL_REFRESH_BODY: dict[str, Any] = {
    "requestBody": {
        "required": False,
        "content": {"application/json": {"schema": RefreshRequest.model_json_schema()}},
    }
}


async def read_refresh_request(request: Request) -> RefreshRequest | None:
    """Parse the optional refresh/logout body.

    An empty, malformed or mistyped body yields ``None`` so the handler falls
    back to the ``refresh_token`` cookie instead of failing validation.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return RefreshRequest.model_validate_json(raw)
    except ValidationError:
        return None


def _presented_refresh_token(req: RefreshRequest | None, request: Request) -> str | None:
    if req is not None and req.refresh_token:
        return req.refresh_token
    return request.cookies.get(REFRESH_TOKEN_COOKIE)


def create_auth_router(service: AuthService, config: AuthConfig) -> APIRouter:
    """Build authentication router with account, session and identity endpoints."""
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    def respond(result: AuthResult, response: Response) -> AuthResponse:
        apply_auth_cookies(response, result.tokens, secure=config.cookie_secure)
        return AuthResponse(user=result.user, tokens=result.tokens)

    @router.post(
        "/register",
        status_code=201,
        response_model=AuthResponse,
        responses={409: {"model": ApiErrorResponse}, 422: {"model": ApiErrorResponse}},
    )
    def register(req: RegisterRequest, response: Response) -> AuthResponse:
        """Create an account and return the first token pair."""
        result = service.register(req.email, req.password, req.display_name)
        return respond(result, response)

    @router.post(
        "/login",
        response_model=AuthResponse,
        responses={401: {"model": ApiErrorResponse}},
    )
    def login(req: LoginRequest, response: Response) -> AuthResponse:
        """Authenticate user and return token pair."""
        result = service.login(req.email, req.password)
        return respond(result, response)

    @router.post(
        "/refresh",
        response_model=AuthResponse,
        responses={401: {"model": ApiErrorResponse}},
        openapi_extra=_OPTIONAL_REFRESH_BODY,
    )
    def refresh(
        request: Request,
        response: Response,
        req: RefreshRequest | None = Depends(read_refresh_request),
    ) -> AuthResponse:
        """Rotate refresh token and issue new session tokens."""
        result = service.refresh(_presented_refresh_token(req, request))
        return respond(result, response)

    @router.post(
        "/logout",
        status_code=204,
        response_class=Response,
        openapi_extra=_OPTIONAL_REFRESH_BODY,
    )
    def logout(
        request: Request,
        req: RefreshRequest | None = Depends(read_refresh_request),
    ) -> Response:
        """Revoke the presented refresh token and clear auth cookies."""
        service.logout(_presented_refresh_token(req, request))
        response = Response(status_code=204)
        clear_auth_cookies(response, secure=config.cookie_secure)
        return response

    @router.post(
        "/password",
        response_model=AuthResponse,
        responses={401: {"model": ApiErrorResponse}, 422: {"model": ApiErrorResponse}},
    )
    def change_password(
        req: ChangePasswordRequest,
        response: Response,
        user: AuthenticatedUser = Depends(require_auth_user),
    ) -> AuthResponse:
        """Change the caller's password; other sessions are signed out."""
        result = service.change_password(
            user.user_id, req.current_password, req.new_password
        )
        return respond(result, response)

    @router.get(
        "/me",
        response_model=AuthMeResponse,
        responses={401: {"model": ApiErrorResponse}},
    )
    def me(user: AuthenticatedUser = Depends(require_auth_user)) -> AuthMeResponse:
        """Return the identity carried by the caller's access token."""
        return AuthMeResponse(user=user)

    return router
