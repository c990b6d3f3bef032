"""Versioned MongoDB index migrations for auth collections."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from eventplan.core.logging import CORRELATION_ID_CTX

LOGGER = logging.getLogger(__name__)

USERS_COLLECTION = "users"
REFRESH_TOKENS_COLLECTION = "user_refresh_tokens"

MigrationFn = Callable[[Any], None]


def _migration_0001_user_indexes(db: Any) -> None:
    db[USERS_COLLECTION].create_index("user_id", unique=True)
    db[USERS_COLLECTION].create_index("email", unique=True)


def _migration_0002_refresh_token_indexes(db: Any) -> None:
    db[REFRESH_TOKENS_COLLECTION].create_index("token_id", unique=True)
    db[REFRESH_TOKENS_COLLECTION].create_index("token_hash", unique=True)
    db[REFRESH_TOKENS_COLLECTION].create_index("user_id")


MIGRATIONS: list[tuple[str, MigrationFn]] = [
    ("0001_user_indexes", _migration_0001_user_indexes),
    ("0002_refresh_token_indexes", _migration_0002_refresh_token_indexes),
]


def apply_mongo_migrations(db: Any) -> list[str]:
    """Apply pending migrations to ``db``; return ids applied by this call."""
    migration_collection = db["schema_migrations"]
    migration_collection.create_index("migration_id", unique=True)

    applied: list[str] = []
    for migration_id, migration_fn in MIGRATIONS:
        if migration_collection.find_one({"migration_id": migration_id}):
            continue
        migration_fn(db)
        migration_collection.insert_one(
            {
                "migration_id": migration_id,
                "applied_at": datetime.now(timezone.utc),
                "correlation_id": CORRELATION_ID_CTX.get(),
            }
        )
        applied.append(migration_id)
        LOGGER.info("mongo_migration_applied %s", migration_id)
    return applied
