"""Dialect-aware ``INSERT ... ON CONFLICT`` construction."""
from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def dialect_insert(db: Session, table: Any):
    """Return an insert construct that supports ``on_conflict_do_*`` for the bound dialect."""

    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert(table)
    if name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upserts are not supported on the {name!r} dialect")
