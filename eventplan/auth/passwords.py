"""PBKDF2 password hashing with self-describing, upgradable hash strings.

Stored format: ``pbkdf2$<iterations>$<salt>$<derived_key>`` where salt and
key are base64url without padding. Iterations are read back from the stored
string, so older hashes keep verifying after the default is raised.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

from eventplan.core.encoding import b64url_decode, b64url_encode, encode_text

HASH_SCHEME = "pbkdf2"
HASH_DIGEST = "sha256"
DEFAULT_ITERATIONS = 100_000
KEY_LENGTH = 32
SALT_LENGTH = 16

PASSWORD_MIN_LENGTH = 8
PASSWORD_STRENGTH_HINT = "Password must be at least 8 characters long."


def _derive_key(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac(
        HASH_DIGEST, encode_text(password), salt, iterations, dklen=KEY_LENGTH
    )


def hash_password(password: str, *, iterations: int = DEFAULT_ITERATIONS) -> str:
    """Hash password using PBKDF2-HMAC-SHA256 with random salt."""
    if iterations <= 0:
        raise ValueError("iterations must be positive")
    salt = secrets.token_bytes(SALT_LENGTH)
    derived = _derive_key(password, salt, iterations)
    return f"{HASH_SCHEME}${iterations}${b64url_encode(salt)}${b64url_encode(derived)}"


def _parse(stored_hash: str) -> tuple[int, bytes, bytes] | None:
    parts = stored_hash.split("$")
    if len(parts) != 4:
        return None
    scheme, iterations_raw, salt_b64, key_b64 = parts
    if scheme != HASH_SCHEME or not salt_b64 or not key_b64:
        return None
    try:
        iterations = int(iterations_raw)
        salt = b64url_decode(salt_b64)
        expected = b64url_decode(key_b64)
    except ValueError:
        return None
    if iterations <= 0:
        return None
    return iterations, salt, expected


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify password against a stored hash; malformed records never match."""
    parsed = _parse(stored_hash)
    if parsed is None:
        return False
    iterations, salt, expected = parsed
    try:
        derived = _derive_key(password, salt, iterations)
    except UnicodeEncodeError:
        return False
    return hmac.compare_digest(derived, expected)


def upgrade_password_hash_if_needed(
    password: str,
    stored_hash: str,
    *,
    min_iterations: int = DEFAULT_ITERATIONS,
) -> str:
    """Return a fresh hash when the stored one is outdated, else the input.

    Call only after ``verify_password`` succeeded for ``password``.
    """
    scheme, _, rest = stored_hash.partition("$")
    iterations_raw = rest.split("$", 1)[0]
    if scheme != HASH_SCHEME:
        return hash_password(password, iterations=min_iterations)
    try:
        iterations = int(iterations_raw)
    except ValueError:
        return hash_password(password, iterations=min_iterations)
    if iterations < min_iterations:
        return hash_password(password, iterations=min_iterations)
    return stored_hash
