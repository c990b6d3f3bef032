"""Repositories for users and refresh-token records.

Reads and writes touch one row, except revoking every token of one user.
``revoke_refresh_token`` is a compare-and-set: it reports whether this call
flipped the record from live to revoked, so two concurrent refreshes with one
token cannot both win.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

import pymongo
from pymongo.errors import DuplicateKeyError

from eventplan.auth.errors import EmailConflictError
from eventplan.auth.models import RefreshTokenRecord, UserRecord
from eventplan.core.config import StorageConfig
from eventplan.core.migrations import apply_migrations
from eventplan.core.mongo_migrations import (
    REFRESH_TOKENS_COLLECTION,
    USERS_COLLECTION,
    apply_mongo_migrations,
)


class AuthRepository(Protocol):
    """Storage collaborator consumed by ``AuthService``."""

    def get_user_by_email(self, email: str) -> UserRecord | None: ...

    def get_user_by_id(self, user_id: str) -> UserRecord | None: ...

    def create_user(self, user: UserRecord) -> None: ...

    def update_password_hash(
        self, user_id: str, password_hash: str, updated_at: datetime
    ) -> None: ...

    def save_refresh_token(self, record: RefreshTokenRecord) -> None: ...

    def get_refresh_token_by_hash(self, token_hash: str) -> RefreshTokenRecord | None: ...

    def revoke_refresh_token(self, token_id: str, revoked_at: datetime) -> bool: ...

    def revoke_user_refresh_tokens(self, user_id: str, revoked_at: datetime) -> int: ...


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class SqliteAuthRepository:
    """Auth repository backed by the relational SQLite schema."""

    def __init__(self, database_path: Path) -> None:
        apply_migrations(database_path)
        self._connection = sqlite3.connect(str(database_path), check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._lock = Lock()

    def get_user_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            row = self._connection.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
        return UserRecord.model_validate(dict(row)) if row else None

    def get_user_by_id(self, user_id: str) -> UserRecord | None:
        with self._lock:
            row = self._connection.execute(
                "SELECT * FROM users WHERE user_id = ?", (user_id,)
            ).fetchone()
        return UserRecord.model_validate(dict(row)) if row else None

    def create_user(self, user: UserRecord) -> None:
        """Insert user; raise ``EmailConflictError`` on duplicate email."""
        with self._lock:
            try:
                self._connection.execute(
                    """
                    INSERT INTO users(
                      user_id, email, display_name, password_hash, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user.user_id,
                        user.email,
                        user.display_name,
                        user.password_hash,
                        _iso(user.created_at),
                        _iso(user.updated_at),
                    ),
                )
                self._connection.commit()
            except sqlite3.IntegrityError as exc:
                self._connection.rollback()
                raise EmailConflictError("Email already registered") from exc

    def update_password_hash(
        self, user_id: str, password_hash: str, updated_at: datetime
    ) -> None:
        with self._lock:
            self._connection.execute(
                "UPDATE users SET password_hash = ?, updated_at = ? WHERE user_id = ?",
                (password_hash, _iso(updated_at), user_id),
            )
            self._connection.commit()

    def delete_user(self, user_id: str) -> None:
        """Delete user; refresh-token rows cascade."""
        with self._lock:
            self._connection.execute("DELETE FROM users WHERE user_id = ?", (user_id,))
            self._connection.commit()

    def save_refresh_token(self, record: RefreshTokenRecord) -> None:
        with self._lock:
            self._connection.execute(
                """
                INSERT INTO user_refresh_tokens(
                  token_id, user_id, token_hash, expires_at, created_at, last_used_at, revoked_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.token_id,
                    record.user_id,
                    record.token_hash,
                    _iso(record.expires_at),
                    _iso(record.created_at),
                    _iso(record.last_used_at),
                    _iso(record.revoked_at),
                ),
            )
            self._connection.commit()

    def get_refresh_token_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        with self._lock:
            row = self._connection.execute(
                "SELECT * FROM user_refresh_tokens WHERE token_hash = ?", (token_hash,)
            ).fetchone()
        return RefreshTokenRecord.model_validate(dict(row)) if row else None

    def revoke_refresh_token(self, token_id: str, revoked_at: datetime) -> bool:
        with self._lock:
            cursor = self._connection.execute(
                """
                UPDATE user_refresh_tokens
                SET revoked_at = ?, last_used_at = ?
                WHERE token_id = ? AND revoked_at IS NULL
                """,
                (_iso(revoked_at), _iso(revoked_at), token_id),
            )
            self._connection.commit()
            return cursor.rowcount == 1

    def revoke_user_refresh_tokens(self, user_id: str, revoked_at: datetime) -> int:
        """Revoke every live refresh token of a user; return how many."""
        with self._lock:
            cursor = self._connection.execute(
                """
                UPDATE user_refresh_tokens
                SET revoked_at = ?
                WHERE user_id = ? AND revoked_at IS NULL
                """,
                (_iso(revoked_at), user_id),
            )
            self._connection.commit()
            return cursor.rowcount

    def close(self) -> None:
        """Close SQLite resources."""
        with self._lock:
            self._connection.close()


class MongoAuthRepository:
    """Auth repository backed by MongoDB collections."""

    def __init__(self, db: Any) -> None:
        self._users = db[USERS_COLLECTION]
        self._refresh = db[REFRESH_TOKENS_COLLECTION]

    def get_user_by_email(self, email: str) -> UserRecord | None:
        doc = self._users.find_one({"email": email.strip().lower()}, {"_id": 0})
        return UserRecord.model_validate(doc) if doc else None

    def get_user_by_id(self, user_id: str) -> UserRecord | None:
        doc = self._users.find_one({"user_id": user_id}, {"_id": 0})
        return UserRecord.model_validate(doc) if doc else None

    def create_user(self, user: UserRecord) -> None:
        try:
            self._users.insert_one(user.model_dump())
        except DuplicateKeyError as exc:
            raise EmailConflictError("Email already registered") from exc

    def update_password_hash(
        self, user_id: str, password_hash: str, updated_at: datetime
    ) -> None:
        self._users.update_one(
            {"user_id": user_id},
            {"$set": {"password_hash": password_hash, "updated_at": updated_at}},
        )

    def save_refresh_token(self, record: RefreshTokenRecord) -> None:
        self._refresh.insert_one(record.model_dump())

    def get_refresh_token_by_hash(self, token_hash: str) -> RefreshTokenRecord | None:
        doc = self._refresh.find_one({"token_hash": token_hash}, {"_id": 0})
        return RefreshTokenRecord.model_validate(doc) if doc else None

    def revoke_refresh_token(self, token_id: str, revoked_at: datetime) -> bool:
        result = self._refresh.update_one(
            {"token_id": token_id, "revoked_at": None},
            {"$set": {"revoked_at": revoked_at, "last_used_at": revoked_at}},
        )
        return result.modified_count == 1

    def revoke_user_refresh_tokens(self, user_id: str, revoked_at: datetime) -> int:
        result = self._refresh.update_many(
            {"user_id": user_id, "revoked_at": None},
            {"$set": {"revoked_at": revoked_at}},
        )
        return result.modified_count


def create_auth_repository(storage: StorageConfig, app_root: Path) -> AuthRepository:
    """Build MongoDB repository when a URI is configured, SQLite otherwise."""
    if storage.mongodb_uri:
        client: Any = pymongo.MongoClient(
            storage.mongodb_uri, serverSelectionTimeoutMS=3000, tz_aware=True
        )
        client.admin.command("ping")
        db = client[storage.mongodb_db]
        apply_mongo_migrations(db)
        return MongoAuthRepository(db)
    return SqliteAuthRepository((app_root / storage.sqlite_path).resolve())
