"""Daily study queue construction."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

from flashdeck.config import settings
from flashdeck.core.clock import Clock, SystemClock, ensure_utc
from flashdeck.core.context import OperationContext, unbounded
from flashdeck.db.models.flashcard import Eligibility, Flashcard
from flashdeck.db.session import bound_statements
from flashdeck.services.card_store import CardStore
from flashdeck.services.progress import ProgressService
from flashdeck.services.settings_provider import SettingsProvider
from flashdeck.utils.exceptions import ValidationError

MAX_GOAL_HINT = 1000


@dataclass(slots=True)
class QueueItem:
    """Representation of a queue entry returned to the API."""

    id: uuid.UUID
    front: str
    back: str | None
    state: str
    due_at: datetime | None

    @classmethod
    def from_card(cls, card: Flashcard) -> "QueueItem":
        return cls(
            id=card.id,
            front=card.front,
            back=card.back,
            state=card.state,
            due_at=ensure_utc(card.due_at),
        )


@dataclass(slots=True)
class QueueMeta:
    due_count: int
    new_selected: int
    daily_goal: int


@dataclass(slots=True)
class StudyQueue:
    meta: QueueMeta
    due: list[QueueItem] = field(default_factory=list)
    new: list[QueueItem] = field(default_factory=list)


class QueueBuilder:
    """Compose settings, today's progress and the card store into a budgeted queue."""

    def __init__(
        self,
        db: Session,
        *,
        clock: Clock | None = None,
        settings_provider: SettingsProvider | None = None,
        progress_service: ProgressService | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or SystemClock()
        self.cards = CardStore(db)
        self.settings_provider = settings_provider or SettingsProvider(db)
        self.progress = progress_service or ProgressService(db)

    def build(
        self,
        user_id: uuid.UUID,
        goal_hint: int | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> StudyQueue:
        """Return due cards first, then new cards, never exceeding today's remaining goal."""

        ctx = ctx or unbounded()
        if goal_hint is not None and not 1 <= goal_hint <= MAX_GOAL_HINT:
            raise ValidationError(f"goal_hint must be between 1 and {MAX_GOAL_HINT}")

        now = self.clock.now()
        today = self.clock.today_key()

        ctx.check("settings lookup")
        bound_statements(self.db, ctx)
        study_settings = self.settings_provider.get(user_id)
        ctx.check("progress lookup")
        progress = self.progress.get_day(user_id, today)

        effective_goal = max(
            1,
            _first_set(
                progress.goal_override,
                study_settings.daily_goal,
                goal_hint,
                settings.SRS_DEFAULT_DAILY_GOAL,
            ),
        )
        remaining_for_today = max(effective_goal - progress.reviews_done, 0)

        ctx.check("due card lookup")
        due_cards = [
            card
            for card in self.cards.due_cards(user_id, now, remaining_for_today)
            if card.eligibility(now) is Eligibility.DUE_CANDIDATE
        ]
        remaining_after_due = max(remaining_for_today - len(due_cards), 0)

        new_limit = _first_set(study_settings.new_limit, settings.SRS_DEFAULT_NEW_LIMIT)
        new_limit = max(0, min(new_limit, settings.SRS_SOFT_NEW_CAP))
        max_new_to_show = min(new_limit, remaining_after_due)

        ctx.check("new card lookup")
        new_cards = [
            card
            for card in self.cards.new_candidates(user_id, max_new_to_show)
            if card.eligibility(now) is Eligibility.NEW_CANDIDATE
        ]

        queue = StudyQueue(
            due=[QueueItem.from_card(card) for card in due_cards],
            new=[QueueItem.from_card(card) for card in new_cards],
            meta=QueueMeta(
                due_count=len(due_cards),
                new_selected=len(new_cards),
                daily_goal=effective_goal,
            ),
        )
        logger.debug(
            "Study queue built",
            user_id=str(user_id),
            due=queue.meta.due_count,
            new=queue.meta.new_selected,
            daily_goal=effective_goal,
            reviews_done=progress.reviews_done,
        )
        return queue


def _first_set(*values: int | None) -> int:
    for value in values:
        if value is not None:
            return value
    raise ValueError("at least one value must be set")
