"""Tests for the rating transition table."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from flashdeck.core.srs import MIN_EASE_FACTOR, CardSchedule, review_card
from flashdeck.core.srs.sm2 import round_half_up

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def schedule(interval_days: int = 0, ease_factor: float = 2.5, state: str = "new", reps: int = 0, lapses: int = 0):
    return CardSchedule(
        state=state, interval_days=interval_days, ease_factor=ease_factor, reps=reps, lapses=lapses
    )


def test_again_resets_interval_and_counts_lapse() -> None:
    outcome = review_card(NOW, schedule(interval_days=10, ease_factor=2.5, state="review", reps=4), 0)

    assert outcome.state == "relearning"
    assert outcome.interval_days == 0
    assert outcome.ease_factor == pytest.approx(2.2)
    assert outcome.due_at == NOW + timedelta(minutes=10)
    assert outcome.reps == 5
    assert outcome.lapses == 1


def test_hard_halves_interval_with_floor_of_one_day() -> None:
    outcome = review_card(NOW, schedule(interval_days=5, state="review"), 1)

    assert outcome.state == "learning"
    assert outcome.interval_days == 3
    assert outcome.ease_factor == pytest.approx(2.3)
    assert outcome.due_at == NOW + timedelta(days=1)
    assert outcome.lapses == 0

    first = review_card(NOW, schedule(interval_days=0), 1)
    assert first.interval_days == 1


def test_good_on_new_card_schedules_one_day() -> None:
    outcome = review_card(NOW, schedule(), 2)

    assert outcome.state == "review"
    assert outcome.interval_days == 1
    assert outcome.ease_factor == pytest.approx(2.5)
    assert outcome.due_at == NOW + timedelta(days=1)
    assert outcome.reps == 1


def test_good_multiplies_interval_by_ease() -> None:
    outcome = review_card(NOW, schedule(interval_days=4, state="review"), 2)

    assert outcome.interval_days == 10
    assert outcome.due_at == NOW + timedelta(days=10)


def test_easy_uses_updated_ease_and_bonus_day() -> None:
    outcome = review_card(NOW, schedule(interval_days=4, state="review"), 3)

    assert outcome.ease_factor == pytest.approx(2.6)
    # round(4 * 2.6 + 1) = round(11.4)
    assert outcome.interval_days == 11
    assert outcome.state == "review"

    first = review_card(NOW, schedule(), 3)
    assert first.interval_days == 2
    assert first.due_at == NOW + timedelta(days=2)


def test_ease_never_drops_below_floor() -> None:
    outcome = review_card(NOW, schedule(interval_days=3, ease_factor=1.4, state="review"), 0)
    assert outcome.ease_factor == pytest.approx(1.3)

    outcome = review_card(NOW, schedule(interval_days=3, ease_factor=1.3, state="review"), 1)
    assert outcome.ease_factor == pytest.approx(1.3)


def test_rounding_is_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(3.49) == 3
    # Hard on interval 3: round(1.5)
    assert review_card(NOW, schedule(interval_days=3, state="review"), 1).interval_days == 2


@pytest.mark.parametrize("rating", [-1, 4, True, 2.0, "2", None])
def test_invalid_ratings_are_rejected(rating) -> None:
    with pytest.raises(ValueError):
        review_card(NOW, schedule(), rating)


@pytest.mark.parametrize("rating", [0, 1, 2, 3])
@pytest.mark.parametrize("ease_factor", [1.3, 1.45, 1.7, 2.1, 2.5, 2.8, 3.0])
@pytest.mark.parametrize("interval_days", [0, 1, 2, 3, 7, 30, 120, 365])
def test_schedule_stays_within_bounds(rating, ease_factor, interval_days) -> None:
    state = "new" if interval_days == 0 else "review"
    outcome = review_card(NOW, schedule(interval_days, ease_factor, state=state), rating)

    assert outcome.ease_factor >= MIN_EASE_FACTOR
    assert outcome.interval_days >= 0
    assert outcome.due_at > NOW
    if rating in (2, 3) and interval_days == 0:
        assert outcome.interval_days >= 1
