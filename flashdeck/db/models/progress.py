"""Daily study progress model."""
from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from flashdeck.db.base import Base


class DailyProgress(Base):
    """Per-user, per-UTC-day counters. Rows are created lazily and never deleted."""

    __tablename__ = "user_daily_progress"
    __table_args__ = (
        CheckConstraint("reviews_done >= 0", name="ck_daily_progress_reviews_non_negative"),
        CheckConstraint("new_introduced >= 0", name="ck_daily_progress_new_non_negative"),
        CheckConstraint(
            "goal_override IS NULL OR goal_override >= 0",
            name="ck_daily_progress_goal_override_non_negative",
        ),
    )

    user_id = Column(UUID(as_uuid=True), primary_key=True)
    date_utc = Column(Date, primary_key=True)
    reviews_done = Column(Integer, nullable=False, default=0, server_default="0")
    new_introduced = Column(Integer, nullable=False, default=0, server_default="0")
    goal_override = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
