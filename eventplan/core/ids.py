"""Prefixed opaque identifiers."""

from __future__ import annotations

import uuid

USER_ID_PREFIX = "usr"
REFRESH_TOKEN_ID_PREFIX = "urt"


def new_id(prefix: str) -> str:
    """Return ``<prefix>_<uuid4>`` identifier."""
    return f"{prefix}_{uuid.uuid4()}"
