from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import pytest

from eventplan.auth.errors import (
    AccessTokenExpiredError,
    BadSignatureError,
    CurrentPasswordMismatchError,
    EmailConflictError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    MissingRefreshTokenError,
    RefreshTokenExpiredError,
    UserNotFoundError,
)
from eventplan.auth.models import AccessTokenClaims, RefreshTokenRecord, UserRecord
from eventplan.auth.passwords import hash_password
from eventplan.auth.refresh_tokens import hash_refresh_token
from eventplan.auth.service import AuthService
from eventplan.auth.tokens import sign_access_token
from eventplan.core.config import AuthConfig


@dataclass
class _Repo:
    users: dict[str, UserRecord] = field(default_factory=dict)
    refresh_tokens: dict[str, RefreshTokenRecord] = field(default_factory=dict)

    def get_user_by_email(self, email: str) -> UserRecord | None:
        return next((u for u in self.users.values() if u.email == email), None)

    def get_user_by_id(self, user_id: str) -> UserRecord | None:
        return self.users.get(user_id)

    def create_user(self, user: UserRecord) -> None:
        self.users[user.user_id] = user

    def update_password_hash(
        self, user_id: str, password_hash: str, updated_at: datetime
    ) -> None:
        user = self.users[user_id]
        self.users[user_id] = user.model_copy(
            update={"password_hash": password_hash, "updated_at": updated_at}
        )

    def save_refresh_token(self, record: RefreshTokenRecord) -> None:
        self.refresh_tokens[record.token_id] = record

    def get_refresh_token_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        return next(
            (r for r in self.refresh_tokens.values() if r.token_hash == token_hash),
            None,
        )

    def revoke_refresh_token(self, token_id: str, revoked_at: datetime) -> bool:
        record = self.refresh_tokens.get(token_id)
        if record is None or record.revoked_at is not None:
            return False
        self.refresh_tokens[token_id] = record.model_copy(
            update={"revoked_at": revoked_at, "last_used_at": revoked_at}
        )
        return True

    def revoke_user_refresh_tokens(self, user_id: str, revoked_at: datetime) -> int:
        live = [
            r for r in self.refresh_tokens.values()
            if r.user_id == user_id and r.revoked_at is None
        ]
        for record in live:
            self.refresh_tokens[record.token_id] = record.model_copy(
                update={"revoked_at": revoked_at}
            )
        return len(live)


def _config(**overrides) -> AuthConfig:
    values = {
        "access_token_secret": "test-secret",
        "access_token_ttl_seconds": 300,
        "refresh_token_ttl_seconds": 1200,
        "password_iterations": 1_000,
    }
    values.update(overrides)
    return AuthConfig(**values)


def _claims_for(user_id: str) -> AccessTokenClaims:
    return AccessTokenClaims(sub=user_id, email="alice@example.com", display_name=None)


def _build_service(**overrides) -> tuple[AuthService, _Repo]:
    repo = _Repo()
    return AuthService(repo=repo, config=_config(**overrides)), repo


def test_register_creates_user_and_tokens() -> None:
    service, repo = _build_service()

    result = service.register("Alice@Example.com", "Password123!", "Alice")

    assert result.user.email == "alice@example.com"
    assert result.user.display_name == "Alice"
    assert result.user.user_id.startswith("usr_")
    assert "password_hash" not in result.user.model_dump()
    stored = repo.users[result.user.user_id]
    assert stored.password_hash.startswith("pbkdf2$1000$")
    assert len(repo.refresh_tokens) == 1
    record = next(iter(repo.refresh_tokens.values()))
    assert record.token_id.startswith("urt_")
    assert record.token_hash == hash_refresh_token(result.tokens.refresh_token)
    assert record.token_hash != result.tokens.refresh_token


def test_register_rejects_duplicate_email_case_insensitively() -> None:
    service, _ = _build_service()
    service.register("alice@example.com", "Password123!")

    with pytest.raises(EmailConflictError):
        service.register("ALICE@example.com", "OtherPass123!")


def test_issue_tokens_reports_absolute_expiries() -> None:
    service, _ = _build_service()
    before = datetime.now(timezone.utc)

    tokens = service.register("bob@example.com", "Password123!").tokens

    assert tokens.access_token_expires_at - before <= timedelta(seconds=301)
    assert tokens.access_token_expires_at - before >= timedelta(seconds=299)
    assert tokens.refresh_token_expires_at - before >= timedelta(seconds=1199)


def test_login_and_authenticate_access_token() -> None:
    service, _ = _build_service()
    service.register("alice@example.com", "Password123!", "Alice")

    result = service.login("ALICE@example.com", "Password123!")
    identity = service.authenticate(result.tokens.access_token)

    assert identity.email == "alice@example.com"
    assert identity.user_id == result.user.user_id
    assert identity.display_name == "Alice"


def test_login_failures_are_indistinguishable() -> None:
    service, _ = _build_service()
    service.register("alice@example.com", "Password123!")

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        service.login("alice@example.com", "bad-password")
    with pytest.raises(InvalidCredentialsError) as unknown_user:
        service.login("nobody@example.com", "Password123!")

    assert str(wrong_password.value) == str(unknown_user.value)


def test_login_upgrades_outdated_password_hash() -> None:
    service, repo = _build_service()
    now = datetime.now(timezone.utc)
    repo.create_user(
        UserRecord(
            user_id="usr_legacy",
            email="legacy@example.com",
            password_hash=hash_password("Password123!", iterations=10),
            created_at=now,
            updated_at=now,
        )
    )

    service.login("legacy@example.com", "Password123!")

    assert repo.users["usr_legacy"].password_hash.startswith("pbkdf2$1000$")
    service.login("legacy@example.com", "Password123!")


def test_login_keeps_current_password_hash() -> None:
    service, repo = _build_service()
    user_id = service.register("alice@example.com", "Password123!").user.user_id
    original_hash = repo.users[user_id].password_hash

    service.login("alice@example.com", "Password123!")

    assert repo.users[user_id].password_hash == original_hash


def test_refresh_rotates_token() -> None:
    service, repo = _build_service()
    first = service.register("alice@example.com", "Password123!")

    rotated = service.refresh(first.tokens.refresh_token)

    assert rotated.tokens.refresh_token != first.tokens.refresh_token
    assert rotated.user.user_id == first.user.user_id
    old = repo.get_refresh_token_by_hash(hash_refresh_token(first.tokens.refresh_token))
    assert old is not None
    assert old.revoked_at is not None
    assert old.last_used_at is not None


def test_refresh_token_is_single_use() -> None:
    service, _ = _build_service()
    first = service.register("alice@example.com", "Password123!")
    second = service.refresh(first.tokens.refresh_token)

    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(first.tokens.refresh_token)

    assert service.refresh(second.tokens.refresh_token).tokens.access_token


def test_refresh_requires_a_token() -> None:
    service, _ = _build_service()

    with pytest.raises(MissingRefreshTokenError):
        service.refresh(None)
    with pytest.raises(MissingRefreshTokenError):
        service.refresh("")


def test_refresh_rejects_unknown_token() -> None:
    service, _ = _build_service()

    with pytest.raises(InvalidRefreshTokenError):
        service.refresh("not-a-real-token")


def test_refresh_expired_token_is_revoked() -> None:
    service, repo = _build_service()
    first = service.register("alice@example.com", "Password123!")
    token_hash = hash_refresh_token(first.tokens.refresh_token)
    record = repo.get_refresh_token_by_hash(token_hash)
    assert record is not None
    repo.refresh_tokens[record.token_id] = record.model_copy(
        update={"expires_at": datetime.now(timezone.utc) - timedelta(seconds=1)}
    )

    with pytest.raises(RefreshTokenExpiredError):
        service.refresh(first.tokens.refresh_token)

    revoked = repo.get_refresh_token_by_hash(token_hash)
    assert revoked is not None
    assert revoked.revoked_at is not None


def test_refresh_for_deleted_user_fails_and_revokes() -> None:
    service, repo = _build_service()
    first = service.register("alice@example.com", "Password123!")
    del repo.users[first.user.user_id]

    with pytest.raises(UserNotFoundError):
        service.refresh(first.tokens.refresh_token)

    record = repo.get_refresh_token_by_hash(
        hash_refresh_token(first.tokens.refresh_token)
    )
    assert record is not None
    assert record.revoked_at is not None


def test_refresh_loses_race_when_revoked_concurrently() -> None:
    service, repo = _build_service()
    first = service.register("alice@example.com", "Password123!")
    original_revoke = repo.revoke_refresh_token

    def revoke_after_competitor(token_id: str, revoked_at: datetime) -> bool:
        original_revoke(token_id, revoked_at)
        return original_revoke(token_id, revoked_at)

    repo.revoke_refresh_token = revoke_after_competitor  # type: ignore[method-assign]
    tokens_before = len(repo.refresh_tokens)

    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(first.tokens.refresh_token)

    assert len(repo.refresh_tokens) == tokens_before


def test_logout_revokes_refresh_token() -> None:
    service, _ = _build_service()
    first = service.register("alice@example.com", "Password123!")

    service.logout(first.tokens.refresh_token)

    with pytest.raises(InvalidRefreshTokenError):
        service.refresh(first.tokens.refresh_token)


def test_logout_is_idempotent() -> None:
    service, _ = _build_service()
    first = service.register("alice@example.com", "Password123!")

    service.logout(first.tokens.refresh_token)
    service.logout(first.tokens.refresh_token)
    service.logout("bad-token")
    service.logout(None)


def test_authenticate_rejects_foreign_and_expired_tokens() -> None:
    service, _ = _build_service()
    result = service.register("alice@example.com", "Password123!")
    foreign = sign_access_token(
        _claims_for(result.user.user_id), "another-secret", 60
    ).token
    expired = sign_access_token(_claims_for(result.user.user_id), "test-secret", -1).token

    with pytest.raises(BadSignatureError):
        service.authenticate(foreign)
    with pytest.raises(AccessTokenExpiredError):
        service.authenticate(expired)


def test_authenticate_honours_configured_clock_skew() -> None:
    service, _ = _build_service(clock_skew_seconds=30)
    recently_expired = sign_access_token(_claims_for("usr_x"), "test-secret", -5).token

    assert service.authenticate(recently_expired).user_id == "usr_x"


def test_change_password_replaces_hash_and_ends_other_sessions() -> None:
    service, repo = _build_service()
    first = service.register("alice@example.com", "Password123!")
    other_device = service.login("alice@example.com", "Password123!")

    changed = service.change_password(
        first.user.user_id, "Password123!", "BrandNewPass456!"
    )

    with pytest.raises(InvalidCredentialsError):
        service.login("alice@example.com", "Password123!")
    assert service.login("alice@example.com", "BrandNewPass456!").user.user_id == (
        first.user.user_id
    )
    assert repo.users[first.user.user_id].password_hash.startswith("pbkdf2$1000$")
    assert changed.user.updated_at >= first.user.updated_at
    for stale in (first.tokens.refresh_token, other_device.tokens.refresh_token):
        with pytest.raises(InvalidRefreshTokenError):
            service.refresh(stale)
    assert service.refresh(changed.tokens.refresh_token).tokens.access_token


def test_change_password_requires_current_password() -> None:
    service, repo = _build_service()
    first = service.register("alice@example.com", "Password123!")
    original_hash = repo.users[first.user.user_id].password_hash

    with pytest.raises(CurrentPasswordMismatchError):
        service.change_password(first.user.user_id, "not-my-password", "Whatever123!")

    assert repo.users[first.user.user_id].password_hash == original_hash
    assert service.refresh(first.tokens.refresh_token).tokens.access_token


def test_change_password_for_unknown_user_fails() -> None:
    service, _ = _build_service()

    with pytest.raises(InvalidCredentialsError):
        service.change_password("usr_missing", "Password123!", "BrandNewPass456!")
