"""Compact HS256 access tokens (``header.payload.signature``)."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from typing import Any

from eventplan.auth.errors import (
    AccessTokenExpiredError,
    BadSignatureError,
    InvalidPayloadError,
    TokenFormatError,
    UnsupportedAlgorithmError,
)
from eventplan.auth.models import AccessTokenClaims, AccessTokenPayload
from eventplan.core.encoding import (
    DecodeError,
    b64url_decode,
    b64url_encode,
    decode_text,
    encode_text,
)

TOKEN_ALGORITHM = "HS256"
TOKEN_TYPE = "JWT"


@dataclass(frozen=True)
class SignedAccessToken:
    token: str
    payload: AccessTokenPayload


def _encode_segment(value: dict[str, Any]) -> str:
    return b64url_encode(encode_text(json.dumps(value, separators=(",", ":"))))


def _decode_segment(segment: str) -> Any:
    return json.loads(decode_text(b64url_decode(segment)))


def _signature(secret: str, signing_input: str) -> bytes:
    return hmac.new(
        encode_text(secret), encode_text(signing_input), hashlib.sha256
    ).digest()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def sign_access_token(
    claims: AccessTokenClaims,
    secret: str,
    ttl_seconds: int,
    *,
    now: int | None = None,
) -> SignedAccessToken:
    """Sign claims into a token valid for ``ttl_seconds`` from now."""
    issued_at = int(time.time()) if now is None else now
    payload = AccessTokenPayload(
        sub=claims.sub,
        email=claims.email,
        display_name=claims.display_name,
        iat=issued_at,
        exp=issued_at + ttl_seconds,
    )
    header_part = _encode_segment({"alg": TOKEN_ALGORITHM, "typ": TOKEN_TYPE})
    payload_part = _encode_segment(payload.to_wire())
    signing_input = f"{header_part}.{payload_part}"
    signature_part = b64url_encode(_signature(secret, signing_input))
    return SignedAccessToken(token=f"{signing_input}.{signature_part}", payload=payload)


def verify_access_token(
    token: str,
    secret: str,
    *,
    leeway_seconds: int = 0,
    now: int | None = None,
) -> AccessTokenPayload:
    """Verify signature, payload shape and expiry; return the payload."""
    parts = token.split(".")
    if len(parts) != 3:
        raise TokenFormatError("Token must have exactly three segments")
    header_part, payload_part, signature_part = parts

    try:
        header = _decode_segment(header_part)
    except (DecodeError, json.JSONDecodeError) as exc:
        raise TokenFormatError("Malformed token header") from exc
    if not isinstance(header, dict):
        raise TokenFormatError("Malformed token header")
    if header.get("alg") != TOKEN_ALGORITHM:
        raise UnsupportedAlgorithmError(f"Unsupported algorithm: {header.get('alg')!r}")

    try:
        got_sig = b64url_decode(signature_part)
    except DecodeError as exc:
        raise BadSignatureError("Malformed token signature") from exc
    expected_sig = _signature(secret, f"{header_part}.{payload_part}")
    if not hmac.compare_digest(expected_sig, got_sig):
        raise BadSignatureError("Invalid token signature")

    try:
        raw = _decode_segment(payload_part)
    except (DecodeError, json.JSONDecodeError) as exc:
        raise InvalidPayloadError("Malformed token payload") from exc
    if not isinstance(raw, dict):
        raise InvalidPayloadError("Token payload must be an object")
    sub = raw.get("sub")
    email = raw.get("email")
    display_name = raw.get("displayName")
    iat = raw.get("iat")
    exp = raw.get("exp")
    if not isinstance(sub, str) or not isinstance(email, str):
        raise InvalidPayloadError("Token subject and email must be strings")
    if "displayName" not in raw or (
        display_name is not None and not isinstance(display_name, str)
    ):
        raise InvalidPayloadError("Token display name must be a string or null")
    if not _is_number(iat) or not _is_number(exp):
        raise InvalidPayloadError("Token iat and exp must be numbers")

    current = int(time.time()) if now is None else now
    if exp + leeway_seconds <= current:
        raise AccessTokenExpiredError("Token expired")

    return AccessTokenPayload(
        sub=sub, email=email, display_name=display_name, iat=iat, exp=exp
    )
