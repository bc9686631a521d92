"""Flashcard model and scheduling eligibility rules."""
from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    and_,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from flashdeck.core.clock import ensure_utc, utcnow
from flashdeck.db.base import Base


class CardState(str, enum.Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"


class CardSource(str, enum.Enum):
    MANUAL = "manual"
    AI = "ai"
    AI_EDITED = "ai_edited"


class Eligibility(str, enum.Enum):
    """Which queue, if any, a card may currently appear in."""

    NEW_CANDIDATE = "new_candidate"
    DUE_CANDIDATE = "due_candidate"
    INELIGIBLE = "ineligible"


DEFAULT_EASE_FACTOR = 2.5


class Flashcard(Base):
    """A learner-owned card together with its scheduling state."""

    __tablename__ = "flashcards"
    __table_args__ = (
        CheckConstraint("ease_factor >= 1.3", name="ck_flashcards_ease_floor"),
        CheckConstraint("interval_days >= 0", name="ck_flashcards_interval_non_negative"),
        CheckConstraint("reps >= 0 AND lapses >= 0", name="ck_flashcards_counters_non_negative"),
        Index(
            "uq_flashcards_user_content_live",
            "user_id",
            "content_hash",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("ix_flashcards_user_due", "user_id", "due_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)

    front = Column(Text, nullable=False)
    back = Column(Text, nullable=False)
    source = Column(String(20), nullable=False, default=CardSource.MANUAL.value)
    content_hash = Column(String(64), nullable=False)

    # Scheduling
    state = Column(String(20), nullable=False, default=CardState.NEW.value)
    due_at = Column(DateTime(timezone=True), nullable=True)
    interval_days = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=DEFAULT_EASE_FACTOR)
    reps = Column(Integer, nullable=False, default=0)
    lapses = Column(Integer, nullable=False, default=0)
    introduced_on = Column(Date, nullable=True)
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    last_rating = Column(SmallInteger, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # ------------------------------------------------------------------
    # Eligibility: SQL clauses and the in-memory tag share one definition
    # ------------------------------------------------------------------
    @classmethod
    def live_clause(cls, user_id: uuid.UUID):
        return and_(cls.user_id == user_id, cls.deleted_at.is_(None))

    @classmethod
    def new_candidate_clause(cls, user_id: uuid.UUID):
        return and_(
            cls.live_clause(user_id),
            cls.state == CardState.NEW.value,
            cls.introduced_on.is_(None),
        )

    @classmethod
    def due_candidate_clause(cls, user_id: uuid.UUID, now: datetime):
        return and_(cls.live_clause(user_id), cls.due_at.isnot(None), cls.due_at <= now)

    def eligibility(self, now: datetime) -> Eligibility:
        """Return the queue this card belongs to at ``now``."""

        if self.deleted_at is not None:
            return Eligibility.INELIGIBLE
        if self.state == CardState.NEW.value and self.introduced_on is None:
            return Eligibility.NEW_CANDIDATE
        due_at = ensure_utc(self.due_at)
        if due_at is not None and due_at <= now:
            return Eligibility.DUE_CANDIDATE
        return Eligibility.INELIGIBLE
