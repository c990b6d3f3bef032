"""Opaque refresh tokens; only their SHA-256 digest is ever persisted."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from eventplan.core.encoding import b64url_encode, encode_text

REFRESH_TOKEN_BYTES = 48


@dataclass(frozen=True)
class IssuedRefreshToken:
    token: str
    token_hash: str
    expires_at: datetime


def hash_refresh_token(token: str) -> str:
    """Hash raw token for storage/comparison."""
    return b64url_encode(hashlib.sha256(encode_text(token)).digest())


def create_refresh_token(
    ttl_seconds: int, *, now: datetime | None = None
) -> IssuedRefreshToken:
    """Generate a random refresh token expiring ``ttl_seconds`` from now."""
    issued_at = now or datetime.now(timezone.utc)
    token = b64url_encode(secrets.token_bytes(REFRESH_TOKEN_BYTES))
    return IssuedRefreshToken(
        token=token,
        token_hash=hash_refresh_token(token),
        expires_at=issued_at + timedelta(seconds=ttl_seconds),
    )
