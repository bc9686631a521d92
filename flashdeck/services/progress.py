"""Business logic for per-day study progress counters.

The daily row is shared by every concurrent request of one learner (two tabs
rating at the same time), so counters are only ever changed through
``_increment``: an optimistic compare-and-swap retried once, then an atomic
``INSERT ... ON CONFLICT DO UPDATE SET c = c + delta`` that cannot lose the
increment.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from loguru import logger
from sqlalchemy import and_, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from flashdeck.core.clock import parse_day_key
from flashdeck.core.context import OperationContext, unbounded
from flashdeck.db.models.progress import DailyProgress
from flashdeck.db.session import unit_of_work
from flashdeck.db.upsert import dialect_insert
from flashdeck.utils.exceptions import ValidationError

CAS_ATTEMPTS = 2
MAX_RANGE_DAYS = 366


class CounterRaceLost(Exception):
    """Another writer changed the counter between our read and our guarded write."""


@dataclass(slots=True)
class ProgressSnapshot:
    user_id: uuid.UUID
    date_utc: date
    reviews_done: int = 0
    new_introduced: int = 0
    goal_override: int | None = None

    @classmethod
    def from_row(cls, row: DailyProgress) -> "ProgressSnapshot":
        return cls(
            user_id=row.user_id,
            date_utc=row.date_utc,
            reviews_done=row.reviews_done or 0,
            new_introduced=row.new_introduced or 0,
            goal_override=row.goal_override,
        )


class ProgressService:
    """Read and mutate ``user_daily_progress`` rows."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def _row_key(self, user_id: uuid.UUID, day: date):
        return and_(DailyProgress.user_id == user_id, DailyProgress.date_utc == day)

    def get_day(self, user_id: uuid.UUID, day: date) -> ProgressSnapshot:
        """Return the day's counters, zeroed when no row exists yet."""

        stmt = (
            select(DailyProgress)
            .where(self._row_key(user_id, day))
            .execution_options(populate_existing=True)
        )
        row = self.db.scalars(stmt).first()
        if row is None:
            return ProgressSnapshot(user_id=user_id, date_utc=day)
        return ProgressSnapshot.from_row(row)

    def read_progress(
        self,
        user_id: uuid.UUID,
        *,
        day: str | date | None = None,
        start: str | date | None = None,
        end: str | date | None = None,
    ) -> list[ProgressSnapshot]:
        """Return stored rows for one day, an inclusive range, or everything."""

        stmt = select(DailyProgress).where(DailyProgress.user_id == user_id)
        if day is not None:
            stmt = stmt.where(DailyProgress.date_utc == _parse_day(day, "date"))
        elif start is not None or end is not None:
            if start is None or end is None:
                raise ValidationError("Both start and end are required for a range query")
            start_day = _parse_day(start, "start")
            end_day = _parse_day(end, "end")
            if start_day > end_day:
                raise ValidationError("start must not be after end", {"reason": "start_gt_end"})
            if end_day - start_day >= timedelta(days=MAX_RANGE_DAYS):
                raise ValidationError(
                    f"Range may span at most {MAX_RANGE_DAYS} days", {"reason": "range_too_large"}
                )
            stmt = stmt.where(DailyProgress.date_utc.between(start_day, end_day))
        stmt = stmt.order_by(DailyProgress.date_utc.asc()).execution_options(populate_existing=True)
        return [ProgressSnapshot.from_row(row) for row in self.db.scalars(stmt)]

    # ------------------------------------------------------------------
    # Counter mutations
    # ------------------------------------------------------------------
    def increment_reviews_done(
        self, user_id: uuid.UUID, day: date, *, ctx: OperationContext | None = None
    ) -> None:
        self._increment(user_id, day, DailyProgress.reviews_done, 1, ctx or unbounded())

    def increment_new_introduced(
        self, user_id: uuid.UUID, day: date, count: int, *, ctx: OperationContext | None = None
    ) -> None:
        if count < 0:
            raise ValidationError("count must be non-negative")
        if count == 0:
            return
        self._increment(user_id, day, DailyProgress.new_introduced, count, ctx or unbounded())

    def _read_counter(self, user_id: uuid.UUID, day: date, column: Any) -> int | None:
        return self.db.execute(select(column).where(self._row_key(user_id, day))).scalar_one_or_none()

    def _compare_and_swap(self, user_id: uuid.UUID, day: date, column: Any, delta: int) -> None:
        observed = self._read_counter(user_id, day, column)
        if observed is None:
            try:
                with self.db.begin_nested():
                    self.db.execute(
                        insert(DailyProgress).values(
                            user_id=user_id, date_utc=day, **{column.key: delta}
                        )
                    )
            except IntegrityError as exc:
                raise CounterRaceLost(f"{column.key} row created concurrently") from exc
            return

        result = self.db.execute(
            update(DailyProgress)
            .where(self._row_key(user_id, day), column == observed)
            .values({column.key: observed + delta, "updated_at": func.now()})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise CounterRaceLost(f"{column.key} changed from {observed}")

    def _atomic_add(self, user_id: uuid.UUID, day: date, column: Any, delta: int) -> None:
        stmt = dialect_insert(self.db, DailyProgress).values(
            user_id=user_id, date_utc=day, **{column.key: delta}
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DailyProgress.user_id, DailyProgress.date_utc],
            set_={column.key: column + delta, "updated_at": func.now()},
        )
        self.db.execute(stmt)

    def _increment(
        self, user_id: uuid.UUID, day: date, column: Any, delta: int, ctx: OperationContext
    ) -> None:
        ctx.check("progress update")
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(CAS_ATTEMPTS),
                retry=retry_if_exception_type(CounterRaceLost),
                reraise=True,
            ):
                with attempt:
                    self._compare_and_swap(user_id, day, column, delta)
            return
        except CounterRaceLost:
            logger.info(
                "Progress counter contention, falling back to atomic upsert",
                user_id=str(user_id),
                day=day.isoformat(),
                counter=column.key,
            )
        self._atomic_add(user_id, day, column, delta)

    # ------------------------------------------------------------------
    # Goal override
    # ------------------------------------------------------------------
    def upsert_goal_override(
        self, user_id: uuid.UUID, day: str | date, goal_override: int | None
    ) -> ProgressSnapshot:
        """Set or clear the day's goal override."""

        target_day = _parse_day(day, "date")
        if goal_override is not None and (
            isinstance(goal_override, bool) or not isinstance(goal_override, int) or goal_override < 0
        ):
            raise ValidationError("goal_override must be a non-negative integer or null")

        with unit_of_work(self.db):
            stmt = dialect_insert(self.db, DailyProgress).values(
                user_id=user_id, date_utc=target_day, goal_override=goal_override
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[DailyProgress.user_id, DailyProgress.date_utc],
                set_={"goal_override": stmt.excluded.goal_override, "updated_at": func.now()},
            )
            self.db.execute(stmt)
        logger.info(
            "Goal override updated",
            user_id=str(user_id),
            day=target_day.isoformat(),
            goal_override=goal_override,
        )
        return self.get_day(user_id, target_day)


def _parse_day(value: str | date, field_name: str) -> date:
    try:
        return parse_day_key(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {field_name}: expected YYYY-MM-DD", {"field": field_name}) from exc
