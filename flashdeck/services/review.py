"""Review engine: apply a rating to a card and record the day's progress."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime

from loguru import logger
from sqlalchemy.orm import Session
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from flashdeck.core.clock import Clock, SystemClock
from flashdeck.core.context import OperationContext, unbounded
from flashdeck.core.srs import CardSchedule, ScheduleOutcome, is_valid_rating, review_card
from flashdeck.db.session import unit_of_work
from flashdeck.services.audit import AuditEntry, AuditLogService
from flashdeck.services.card_store import CardStore
from flashdeck.services.progress import ProgressService
from flashdeck.utils.exceptions import ConflictError, NotFoundError, ValidationError

CARD_CAS_ATTEMPTS = 2


class CardRaceLost(Exception):
    """The card's version moved between read and write."""


@dataclass(slots=True)
class ReviewResult:
    """Card scheduling state after a review."""

    card_id: uuid.UUID
    state: str
    due_at: datetime
    interval_days: int
    ease_factor: float
    reps: int
    lapses: int
    last_reviewed_at: datetime
    last_rating: int


class ReviewEngine:
    def __init__(
        self,
        db: Session,
        *,
        clock: Clock | None = None,
        progress_service: ProgressService | None = None,
        audit_log: AuditLogService | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or SystemClock()
        self.cards = CardStore(db)
        self.progress = progress_service or ProgressService(db)
        self.audit = audit_log or AuditLogService(db)

    def review(
        self,
        user_id: uuid.UUID,
        card_id: uuid.UUID,
        rating: int,
        *,
        ctx: OperationContext | None = None,
    ) -> ReviewResult:
        """Persist a learner review and return the card's new schedule."""

        if not is_valid_rating(rating):
            raise ValidationError("rating must be between 0 and 3", {"field": "rating"})
        ctx = ctx or unbounded()
        now = self.clock.now()
        today = self.clock.today_key()

        with unit_of_work(self.db, ctx=ctx):
            try:
                for attempt in Retrying(
                    stop=stop_after_attempt(CARD_CAS_ATTEMPTS),
                    retry=retry_if_exception_type(CardRaceLost),
                    reraise=True,
                ):
                    with attempt:
                        outcome = self._apply(user_id, card_id, rating, now, today, ctx)
            except CardRaceLost as exc:
                logger.warning("Card review lost a concurrent update", card_id=str(card_id))
                raise ConflictError("Card was modified concurrently; reload and retry") from exc

            self.progress.increment_reviews_done(user_id, today, ctx=ctx)
            self.audit.append(
                AuditEntry(
                    actor=user_id,
                    action="review",
                    card_id=card_id,
                    details={
                        "rating": rating,
                        "new_state": outcome.state,
                        "due_at": outcome.due_at.isoformat(),
                    },
                )
            )

        logger.info(
            "Card reviewed",
            user_id=str(user_id),
            card_id=str(card_id),
            rating=rating,
            state=outcome.state,
            interval_days=outcome.interval_days,
        )
        return ReviewResult(
            card_id=card_id,
            state=outcome.state,
            due_at=outcome.due_at,
            interval_days=outcome.interval_days,
            ease_factor=outcome.ease_factor,
            reps=outcome.reps,
            lapses=outcome.lapses,
            last_reviewed_at=now,
            last_rating=rating,
        )

    def _apply(
        self,
        user_id: uuid.UUID,
        card_id: uuid.UUID,
        rating: int,
        now: datetime,
        today: date,
        ctx: OperationContext,
    ) -> ScheduleOutcome:
        ctx.check("card lookup")
        card = self.cards.get_owned(user_id, card_id)
        if card is None:
            raise NotFoundError("Card not found")

        outcome = review_card(
            now,
            CardSchedule(
                state=card.state,
                interval_days=card.interval_days,
                ease_factor=card.ease_factor,
                reps=card.reps,
                lapses=card.lapses,
            ),
            rating,
        )
        values = {
            "state": outcome.state,
            "due_at": outcome.due_at,
            "interval_days": outcome.interval_days,
            "ease_factor": outcome.ease_factor,
            "reps": outcome.reps,
            "lapses": outcome.lapses,
            "last_reviewed_at": now,
            "last_rating": rating,
        }
        if card.introduced_on is None:
            # Reviewing a never-promoted card introduces it
            values["introduced_on"] = today

        ctx.check("card update")
        swapped = self.cards.compare_and_swap(user_id, card_id, card.version, values)
        if not swapped:
            raise CardRaceLost(str(card_id))
        return outcome
