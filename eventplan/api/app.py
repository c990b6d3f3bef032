"""FastAPI application factory."""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import eventplan
from eventplan.api.contracts import HealthResponse
from eventplan.api.http_setup import register_exception_handlers, register_http_middleware
from eventplan.auth.middleware import create_auth_middleware
from eventplan.auth.repository import AuthRepository, create_auth_repository
from eventplan.auth.router import create_auth_router
from eventplan.auth.service import AuthService
from eventplan.core.config import DEV_ACCESS_TOKEN_SECRET, AppConfig

LOGGER = logging.getLogger(__name__)


def create_app(
    config: AppConfig,
    *,
    app_root: Path | None = None,
    repo: AuthRepository | None = None,
) -> FastAPI:
    """Wire config, storage and the auth service into a FastAPI app."""
    if config.auth.access_token_secret == DEV_ACCESS_TOKEN_SECRET:
        LOGGER.warning(
            "insecure_access_token_secret",
            extra={"reason": "AUTH_ACCESS_TOKEN_SECRET is not set"},
        )
    app = FastAPI(title="Event Planner API", version=eventplan.__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
    if repo is None:
        repo = create_auth_repository(config.storage, app_root or Path.cwd())
    auth_service = AuthService(repo, config.auth)

    app.middleware("http")(create_auth_middleware(auth_service))
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    app.include_router(create_auth_router(auth_service, config.auth))

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    return app
