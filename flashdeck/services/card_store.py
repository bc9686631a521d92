"""Card persistence: ownership-scoped reads and version-guarded writes."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from flashdeck.core.clock import ensure_utc
from flashdeck.db.models.flashcard import Flashcard


@dataclass(slots=True)
class CardSnapshot:
    """Plain copy of a card's content and scheduling state."""

    id: uuid.UUID
    front: str
    back: str
    source: str
    state: str
    due_at: datetime | None
    interval_days: int
    ease_factor: float
    reps: int
    lapses: int
    introduced_on: date | None
    last_reviewed_at: datetime | None
    last_rating: int | None
    created_at: datetime | None
    version: int

    @classmethod
    def from_row(cls, card: Flashcard) -> "CardSnapshot":
        return cls(
            id=card.id,
            front=card.front,
            back=card.back,
            source=card.source,
            state=card.state,
            due_at=ensure_utc(card.due_at),
            interval_days=card.interval_days or 0,
            ease_factor=card.ease_factor,
            reps=card.reps or 0,
            lapses=card.lapses or 0,
            introduced_on=card.introduced_on,
            last_reviewed_at=ensure_utc(card.last_reviewed_at),
            last_rating=card.last_rating,
            created_at=ensure_utc(card.created_at),
            version=card.version,
        )


class CardStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_owned(self, user_id: uuid.UUID, card_id: uuid.UUID) -> Flashcard | None:
        """Return a live card owned by ``user_id``, re-read from the database."""

        stmt = (
            select(Flashcard)
            .where(Flashcard.id == card_id, Flashcard.live_clause(user_id))
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def due_cards(self, user_id: uuid.UUID, now: datetime, limit: int) -> list[Flashcard]:
        if limit <= 0:
            return []
        stmt = (
            select(Flashcard)
            .where(Flashcard.due_candidate_clause(user_id, now))
            .order_by(Flashcard.due_at.asc(), Flashcard.id.asc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def new_candidates(self, user_id: uuid.UUID, limit: int) -> list[Flashcard]:
        """Oldest never-introduced cards first."""

        if limit <= 0:
            return []
        stmt = (
            select(Flashcard)
            .where(Flashcard.new_candidate_clause(user_id))
            .order_by(Flashcard.created_at.asc(), Flashcard.id.asc())
            .limit(limit)
        )
        return list(self.db.scalars(stmt))

    def compare_and_swap(
        self, user_id: uuid.UUID, card_id: uuid.UUID, expected_version: int, values: dict[str, Any]
    ) -> bool:
        """Apply ``values`` only if the card still carries ``expected_version``."""

        result = self.db.execute(
            update(Flashcard)
            .where(
                Flashcard.id == card_id,
                Flashcard.live_clause(user_id),
                Flashcard.version == expected_version,
            )
            .values({**values, "version": expected_version + 1})
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_introduced(self, user_id: uuid.UUID, card_ids: list[uuid.UUID], day: date) -> list[uuid.UUID]:
        """Stamp ``introduced_on`` on still-eligible cards; return the ids actually updated."""

        if not card_ids:
            return []
        stmt = (
            update(Flashcard)
            .where(Flashcard.id.in_(card_ids), Flashcard.new_candidate_clause(user_id))
            .values(introduced_on=day)
            .returning(Flashcard.id)
            .execution_options(synchronize_session=False)
        )
        updated = set(self.db.scalars(stmt))
        return [card_id for card_id in card_ids if card_id in updated]
