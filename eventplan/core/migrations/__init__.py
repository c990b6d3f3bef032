"""SQLite schema migrations."""

from eventplan.core.migrations.runner import apply_migrations

__all__ = ["apply_migrations"]
