"""Spaced repetition scheduling policy."""
from flashdeck.core.srs.sm2 import (
    MIN_EASE_FACTOR,
    TRANSITIONS,
    CardSchedule,
    ScheduleOutcome,
    is_valid_rating,
    review_card,
)

__all__ = [
    "MIN_EASE_FACTOR",
    "TRANSITIONS",
    "CardSchedule",
    "ScheduleOutcome",
    "is_valid_rating",
    "review_card",
]
