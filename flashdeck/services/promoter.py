"""Introduce new cards against the day's allowance."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from flashdeck.config import settings
from flashdeck.core.clock import Clock, SystemClock
from flashdeck.core.context import OperationContext, unbounded
from flashdeck.db.session import bound_statements, unit_of_work
from flashdeck.services.audit import AuditEntry, AuditLogService
from flashdeck.services.card_store import CardStore
from flashdeck.services.progress import ProgressService
from flashdeck.services.settings_provider import SettingsProvider
from flashdeck.utils.exceptions import OperationCancelled, OperationTimeout, ValidationError

MAX_REQUESTED = 100


@dataclass(slots=True)
class PromotedCard:
    id: uuid.UUID
    source: str


@dataclass(slots=True)
class PromotionResult:
    remaining_allowance: int
    promoted: list[PromotedCard] = field(default_factory=list)
    # False when cards were introduced but the daily counter could not be bumped
    progress_recorded: bool = True


class NewCardPromoter:
    def __init__(
        self,
        db: Session,
        *,
        clock: Clock | None = None,
        settings_provider: SettingsProvider | None = None,
        progress_service: ProgressService | None = None,
        audit_log: AuditLogService | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or SystemClock()
        self.cards = CardStore(db)
        self.settings_provider = settings_provider or SettingsProvider(db)
        self.progress = progress_service or ProgressService(db)
        self.audit = audit_log or AuditLogService(db)

    def promote(
        self,
        user_id: uuid.UUID,
        count: int | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> PromotionResult:
        """Mark up to ``count`` of the oldest new cards as introduced today."""

        if count is not None and not 0 <= count <= MAX_REQUESTED:
            raise ValidationError(f"count must be between 0 and {MAX_REQUESTED}", {"field": "count"})
        ctx = ctx or unbounded()
        today = self.clock.today_key()

        ctx.check("settings lookup")
        bound_statements(self.db, ctx)
        study_settings = self.settings_provider.get(user_id)
        new_limit = study_settings.new_limit
        if new_limit is None:
            new_limit = settings.SRS_DEFAULT_NEW_LIMIT
        new_limit = max(0, min(new_limit, MAX_REQUESTED))

        ctx.check("progress lookup")
        introduced = self.progress.get_day(user_id, today).new_introduced
        remaining = max(new_limit - introduced, 0)
        requested = remaining if count is None else count
        to_promote = max(0, min(requested, remaining, settings.SRS_SOFT_NEW_CAP))
        if to_promote == 0:
            return PromotionResult(remaining_allowance=remaining)

        with unit_of_work(self.db, ctx=ctx):
            ctx.check("candidate lookup")
            candidates = self.cards.new_candidates(user_id, to_promote)
            if not candidates:
                return PromotionResult(remaining_allowance=remaining)

            ctx.check("card update")
            promoted_ids = self.cards.mark_introduced(user_id, [card.id for card in candidates], today)
            sources = {card.id: card.source for card in candidates}
            progress_recorded = self._record_introduced(user_id, today, len(promoted_ids), ctx)
            self.audit.append(
                AuditEntry(
                    actor=user_id,
                    action="promote_new",
                    details={
                        "count": len(promoted_ids),
                        "card_ids": [str(card_id) for card_id in promoted_ids],
                    },
                )
            )

        logger.info(
            "New cards promoted",
            user_id=str(user_id),
            promoted=len(promoted_ids),
            remaining=max(remaining - len(promoted_ids), 0),
        )
        return PromotionResult(
            remaining_allowance=max(remaining - len(promoted_ids), 0),
            promoted=[PromotedCard(id=card_id, source=sources[card_id]) for card_id in promoted_ids],
            progress_recorded=progress_recorded,
        )

    def _record_introduced(
        self, user_id: uuid.UUID, today: date, count: int, ctx: OperationContext
    ) -> bool:
        """Bump ``new_introduced``; a failure here does not undo the promotion.

        A store error or an expired request context is logged and reported
        through ``progress_recorded``; the introduced cards and their audit
        entry still commit.
        """

        if count == 0:
            return True
        try:
            with self.db.begin_nested():
                self.progress.increment_new_introduced(user_id, today, count, ctx=ctx)
        except (SQLAlchemyError, OperationTimeout, OperationCancelled) as exc:
            logger.error(
                "Cards promoted but new_introduced counter was not updated",
                user_id=str(user_id),
                count=count,
                error=str(exc),
            )
            return False
        return True
