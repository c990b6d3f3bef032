"""Authentication service: accounts, passwords and token sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from eventplan.auth.errors import (
    CurrentPasswordMismatchError,
    EmailConflictError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    MissingRefreshTokenError,
    RefreshTokenExpiredError,
    UserNotFoundError,
)
from eventplan.auth.models import (
    AccessTokenClaims,
    AuthenticatedUser,
    AuthResult,
    AuthTokens,
    PublicUser,
    RefreshTokenRecord,
    UserRecord,
)
from eventplan.auth.passwords import (
    hash_password,
    upgrade_password_hash_if_needed,
    verify_password,
)
from eventplan.auth.refresh_tokens import create_refresh_token, hash_refresh_token
from eventplan.auth.repository import AuthRepository
from eventplan.auth.tokens import sign_access_token, verify_access_token
from eventplan.core.config import AuthConfig
from eventplan.core.ids import REFRESH_TOKEN_ID_PREFIX, USER_ID_PREFIX, new_id

LOGGER = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Coordinates password hashing, token signing and refresh-token storage.

    Holds no state of its own beyond its collaborators; every flow reads and
    writes through ``repo``.
    """

    def __init__(self, repo: AuthRepository, config: AuthConfig) -> None:
        self._repo = repo
        self._config = config

    def register(
        self, email: str, password: str, display_name: str | None = None
    ) -> AuthResult:
        """Create a user and issue the first token pair."""
        normalized_email = email.strip().lower()
        if self._repo.get_user_by_email(normalized_email) is not None:
            raise EmailConflictError("Email already registered")

        now = _utcnow()
        user = UserRecord(
            user_id=new_id(USER_ID_PREFIX),
            email=normalized_email,
            display_name=display_name,
            password_hash=hash_password(
                password, iterations=self._config.password_iterations
            ),
            created_at=now,
            updated_at=now,
        )
        self._repo.create_user(user)
        LOGGER.info("user_registered", extra={"user_id": user.user_id})
        public_user = user.to_public()
        return AuthResult(user=public_user, tokens=self.issue_tokens(public_user))

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate credentials and issue access/refresh token pair."""
        user = self._repo.get_user_by_email(email.strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid email or password")

        upgraded_hash = upgrade_password_hash_if_needed(
            password,
            user.password_hash,
            min_iterations=self._config.password_iterations,
        )
        if upgraded_hash != user.password_hash:
            now = _utcnow()
            self._repo.update_password_hash(user.user_id, upgraded_hash, now)
            user = user.model_copy(
                update={"password_hash": upgraded_hash, "updated_at": now}
            )
            LOGGER.info("password_hash_upgraded", extra={"user_id": user.user_id})

        public_user = user.to_public()
        return AuthResult(user=public_user, tokens=self.issue_tokens(public_user))

    def change_password(
        self, user_id: str, current_password: str, new_password: str
    ) -> AuthResult:
        """Replace the password hash and end every other session of the user.

        All live refresh tokens are revoked; the returned pair is the only
        one that keeps working.
        """
        user = self._repo.get_user_by_id(user_id)
        if user is None or not verify_password(current_password, user.password_hash):
            raise CurrentPasswordMismatchError("Current password is incorrect")

        now = _utcnow()
        new_hash = hash_password(new_password, iterations=self._config.password_iterations)
        self._repo.update_password_hash(user.user_id, new_hash, now)
        self._repo.revoke_user_refresh_tokens(user.user_id, now)
        LOGGER.info("password_changed", extra={"user_id": user.user_id})
        public_user = user.model_copy(
            update={"password_hash": new_hash, "updated_at": now}
        ).to_public()
        return AuthResult(user=public_user, tokens=self.issue_tokens(public_user))

    def issue_tokens(self, user: PublicUser) -> AuthTokens:
        """Sign an access token and persist a fresh refresh token for ``user``."""
        signed = sign_access_token(
            AccessTokenClaims(
                sub=user.user_id, email=user.email, display_name=user.display_name
            ),
            self._config.access_token_secret,
            self._config.access_token_ttl_seconds,
        )
        now = _utcnow()
        refresh = create_refresh_token(self._config.refresh_token_ttl_seconds, now=now)
        self._repo.save_refresh_token(
            RefreshTokenRecord(
                token_id=new_id(REFRESH_TOKEN_ID_PREFIX),
                user_id=user.user_id,
                token_hash=refresh.token_hash,
                expires_at=refresh.expires_at,
                created_at=now,
            )
        )
        return AuthTokens(
            access_token=signed.token,
            refresh_token=refresh.token,
            access_token_expires_at=datetime.fromtimestamp(
                signed.payload.exp, tz=timezone.utc
            ),
            refresh_token_expires_at=refresh.expires_at,
        )

    def refresh(self, refresh_token: str | None) -> AuthResult:
        """Consume a refresh token and rotate the token pair."""
        if not refresh_token:
            raise MissingRefreshTokenError("Refresh token is required")

        record = self._repo.get_refresh_token_by_hash(hash_refresh_token(refresh_token))
        if record is None or record.revoked_at is not None:
            raise InvalidRefreshTokenError("Refresh token is invalid")

        now = _utcnow()
        if record.expires_at <= now:
            self._repo.revoke_refresh_token(record.token_id, now)
            raise RefreshTokenExpiredError("Refresh token expired")

        user = self._repo.get_user_by_id(record.user_id)
        if user is None:
            self._repo.revoke_refresh_token(record.token_id, now)
            raise UserNotFoundError("User not found")

        if not self._repo.revoke_refresh_token(record.token_id, now):
            raise InvalidRefreshTokenError("Refresh token already used")

        public_user = user.to_public()
        return AuthResult(user=public_user, tokens=self.issue_tokens(public_user))

    def logout(self, refresh_token: str | None) -> None:
        """Revoke provided refresh token when available."""
        if not refresh_token:
            return
        record = self._repo.get_refresh_token_by_hash(hash_refresh_token(refresh_token))
        if record is None:
            return
        if self._repo.revoke_refresh_token(record.token_id, _utcnow()):
            LOGGER.info("refresh_token_revoked", extra={"user_id": record.user_id})

    def authenticate(self, access_token: str) -> AuthenticatedUser:
        """Validate access token and return the identity it carries."""
        payload = verify_access_token(
            access_token,
            self._config.access_token_secret,
            leeway_seconds=self._config.clock_skew_seconds,
        )
        return AuthenticatedUser(
            user_id=payload.sub, email=payload.email, display_name=payload.display_name
        )
