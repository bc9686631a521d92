"""Endpoints for per-day study progress."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from flashdeck.api import deps
from flashdeck.schemas import DailyProgressRead, GoalOverrideUpdate
from flashdeck.services.progress import ProgressService

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("", response_model=list[DailyProgressRead])
def read_progress(
    *,
    date: str | None = Query(None, description="Single day (YYYY-MM-DD)"),
    start: str | None = Query(None, description="Inclusive range start (YYYY-MM-DD)"),
    end: str | None = Query(None, description="Inclusive range end (YYYY-MM-DD)"),
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> list[DailyProgressRead]:
    """Return stored progress rows ordered by day."""

    rows = ProgressService(db).read_progress(user_id, day=date, start=start, end=end)
    return [DailyProgressRead.model_validate(row) for row in rows]


@router.patch("/{day}", response_model=DailyProgressRead)
def update_goal_override(
    day: str,
    payload: GoalOverrideUpdate,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> DailyProgressRead:
    """Set or clear the goal override for a day."""

    snapshot = ProgressService(db).upsert_goal_override(user_id, day, payload.goal_override)
    return DailyProgressRead.model_validate(snapshot)
