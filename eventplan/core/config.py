"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}

DEV_ACCESS_TOKEN_SECRET = "dev-insecure-secret-change-me"


@dataclass(frozen=True)
class AuthConfig:
    """Authentication-related configuration."""

    access_token_secret: str
    access_token_ttl_seconds: int = 900
    refresh_token_ttl_seconds: int = 30 * 24 * 3600
    password_iterations: int = 100_000
    clock_skew_seconds: int = 0
    cookie_secure: bool = True


@dataclass(frozen=True)
class StorageConfig:
    """User and refresh-token storage settings."""

    sqlite_path: str = "runtime/eventplan.db"
    mongodb_uri: str = ""
    mongodb_db: str = "eventplan"


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str = "INFO"


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    request_max_bytes: int = 1024 * 1024


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    auth: AuthConfig
    storage: StorageConfig
    logging: LoggingConfig
    security: SecurityConfig

    @staticmethod
    def from_env() -> "AppConfig":
        """Build app config from process environment."""
        secret = (
            os.getenv("AUTH_ACCESS_TOKEN_SECRET", "").strip()
            or DEV_ACCESS_TOKEN_SECRET
        )
        access_ttl = int(os.getenv("AUTH_ACCESS_TOKEN_TTL_SECONDS", "900"))
        refresh_ttl = int(os.getenv("AUTH_REFRESH_TOKEN_TTL_SECONDS", "2592000"))
        iterations = int(os.getenv("AUTH_PASSWORD_ITERATIONS", "100000"))
        clock_skew = int(os.getenv("AUTH_CLOCK_SKEW_SECONDS", "0"))
        cookie_secure = (
            os.getenv("AUTH_COOKIE_SECURE", "1").strip().lower() in _TRUTHY
        )
        if access_ttl <= 0 or refresh_ttl <= 0:
            raise ValueError("Token TTL values must be positive")
        if iterations <= 0:
            raise ValueError("AUTH_PASSWORD_ITERATIONS must be positive")

        sqlite_path = (
            os.getenv("STORAGE_SQLITE_PATH", "runtime/eventplan.db").strip()
            or "runtime/eventplan.db"
        )
        mongodb_uri = os.getenv("MONGODB_URI", "").strip()
        mongodb_db = os.getenv("MONGODB_DB", "eventplan").strip() or "eventplan"
        log_level = os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"
        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]
        request_max_bytes = int(os.getenv("REQUEST_MAX_BYTES", str(1024 * 1024)))

        return AppConfig(
            auth=AuthConfig(
                access_token_secret=secret,
                access_token_ttl_seconds=access_ttl,
                refresh_token_ttl_seconds=refresh_ttl,
                password_iterations=iterations,
                clock_skew_seconds=max(0, clock_skew),
                cookie_secure=cookie_secure,
            ),
            storage=StorageConfig(
                sqlite_path=sqlite_path,
                mongodb_uri=mongodb_uri,
                mongodb_db=mongodb_db,
            ),
            logging=LoggingConfig(level=log_level),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                request_max_bytes=request_max_bytes,
            ),
        )
