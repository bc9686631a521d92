"""Idempotency ledger for batch saves, backed by the ``event_log`` table.

Lookups and writes are read-then-write without a unique guard on the key, so
two concurrent first requests with the same key may both execute
(at-least-once). Replays after either commits are exact.
"""
from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from flashdeck.db.models.audit import EventLog

SAVE_EVENT = "save"


class IdempotencyStore:
    def __init__(self, db: Session, *, event_name: str = SAVE_EVENT) -> None:
        self.db = db
        self.event_name = event_name

    def get(self, user_id: uuid.UUID, key: str) -> dict[str, Any] | None:
        """Return the stored response for ``key``, scoped to ``user_id``."""

        stmt = (
            select(EventLog.properties)
            .where(
                EventLog.user_id == user_id,
                EventLog.event_name == self.event_name,
                EventLog.request_id == key,
            )
            .order_by(EventLog.id.desc())
            .limit(1)
        )
        properties = self.db.scalars(stmt).first()
        if not properties or "response" not in properties:
            return None
        return properties["response"]

    def put(self, user_id: uuid.UUID, key: str, response: dict[str, Any]) -> None:
        self.db.add(
            EventLog(
                user_id=user_id,
                event_name=self.event_name,
                request_id=key,
                properties={"response": response},
            )
        )
        self.db.flush()
