"""Pydantic models for daily progress endpoints."""
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, StrictInt


class DailyProgressRead(BaseModel):
    """Counters for one learner and one UTC day."""

    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    date_utc: date
    reviews_done: int
    new_introduced: int
    goal_override: int | None = None


class GoalOverrideUpdate(BaseModel):
    """Set or clear (``null``) the day's goal override."""

    goal_override: StrictInt | None
