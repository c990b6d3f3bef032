"""Binary/text codec helpers shared by hashing and token code."""

from __future__ import annotations

import base64
import binascii
import re

_B64URL_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")


class DecodeError(ValueError):
    """Raised when base64url or UTF-8 input cannot be decoded."""


def b64url_encode(raw: bytes) -> str:
    """Return URL-safe base64 string without padding."""
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def b64url_decode(value: str) -> bytes:
    """Decode URL-safe base64 string with optional missing padding."""
    if not _B64URL_ALPHABET.fullmatch(value):
        raise DecodeError("Invalid base64url alphabet")
    if len(value) % 4 == 1:
        raise DecodeError("Invalid base64url length")
    padding = "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode((value + padding).encode("ascii"))
    except binascii.Error as exc:
        raise DecodeError("Invalid base64url value") from exc


def encode_text(value: str) -> bytes:
    return value.encode("utf-8")


def decode_text(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError("Invalid UTF-8 sequence") from exc
