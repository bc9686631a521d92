"""Best-effort audit trail."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flashdeck.db.models.audit import AuditLog


@dataclass(slots=True)
class AuditEntry:
    actor: uuid.UUID
    action: str
    card_id: uuid.UUID | None = None
    details: dict[str, Any] = field(default_factory=dict)


class AuditLogService:
    """Append audit entries without ever failing the calling operation."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def append(self, entry: AuditEntry) -> bool:
        """Write ``entry`` inside a savepoint; return whether it was stored."""

        try:
            with self.db.begin_nested():
                self.db.add(
                    AuditLog(
                        acted_by=entry.actor,
                        target_user_id=entry.actor,
                        action=entry.action,
                        card_id=entry.card_id,
                        details=entry.details,
                    )
                )
        except SQLAlchemyError as exc:
            logger.warning(
                "Audit log append failed", action=entry.action, user_id=str(entry.actor), error=str(exc)
            )
            return False
        return True
