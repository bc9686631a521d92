"""Simplified SM-2 scheduling policy expressed as a rating transition table.

Each rating maps to an ease update, an interval update, the next state and a
due offset. The same rule applies whatever state the card is currently in.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Callable, Mapping

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
RELEARNING_MINUTES = 10

RATING_AGAIN = 0
RATING_HARD = 1
RATING_GOOD = 2
RATING_EASY = 3


def round_half_up(value: float) -> int:
    """Round .5 away from zero for the non-negative values used here."""

    return int(math.floor(value + 0.5))


def clamp_ease(ease_factor: float) -> float:
    return max(MIN_EASE_FACTOR, ease_factor)


@dataclass(frozen=True, slots=True)
class CardSchedule:
    """Scheduling fields read from a card before a review."""

    state: str
    interval_days: int
    ease_factor: float
    reps: int
    lapses: int


@dataclass(frozen=True, slots=True)
class ScheduleOutcome:
    """Scheduling fields to write back after a review."""

    state: str
    due_at: dt.datetime
    interval_days: int
    ease_factor: float
    reps: int
    lapses: int


@dataclass(frozen=True, slots=True)
class Transition:
    ease: Callable[[float], float]
    interval: Callable[[int, float], int]
    next_state: str
    due_offset: Callable[[int], dt.timedelta]
    lapse: bool = False


TRANSITIONS: Mapping[int, Transition] = {
    RATING_AGAIN: Transition(
        ease=lambda e: clamp_ease(e - 0.3),
        interval=lambda i, e: 0,
        next_state="relearning",
        due_offset=lambda i: dt.timedelta(minutes=RELEARNING_MINUTES),
        lapse=True,
    ),
    RATING_HARD: Transition(
        ease=lambda e: clamp_ease(e - 0.2),
        interval=lambda i, e: max(1, round_half_up(i * 0.5)),
        next_state="learning",
        due_offset=lambda i: dt.timedelta(days=1),
    ),
    RATING_GOOD: Transition(
        ease=lambda e: clamp_ease(e),
        interval=lambda i, e: 1 if i <= 0 else round_half_up(i * e),
        next_state="review",
        due_offset=lambda i: dt.timedelta(days=i),
    ),
    RATING_EASY: Transition(
        ease=lambda e: clamp_ease(e + 0.1),
        interval=lambda i, e: 2 if i <= 0 else round_half_up(i * e + 1),
        next_state="review",
        due_offset=lambda i: dt.timedelta(days=i),
    ),
}


def is_valid_rating(rating: object) -> bool:
    return isinstance(rating, int) and not isinstance(rating, bool) and rating in TRANSITIONS


def review_card(now: dt.datetime, schedule: CardSchedule, rating: int) -> ScheduleOutcome:
    """Apply ``rating`` to ``schedule`` at ``now``.

    The interval formula sees the already-updated ease factor, so a "Good"
    review of a card at ease 2.5 and interval 4 yields ``round(4 * 2.5) = 10``.
    """
    if not is_valid_rating(rating):
        raise ValueError(f"Rating must be between 0 and 3 inclusive, got {rating!r}")
    transition = TRANSITIONS[rating]

    ease_factor = transition.ease(schedule.ease_factor or DEFAULT_EASE_FACTOR)
    interval_days = max(0, transition.interval(max(0, schedule.interval_days or 0), ease_factor))
    return ScheduleOutcome(
        state=transition.next_state,
        due_at=now + transition.due_offset(interval_days),
        interval_days=interval_days,
        ease_factor=ease_factor,
        reps=(schedule.reps or 0) + 1,
        lapses=(schedule.lapses or 0) + (1 if transition.lapse else 0),
    )
