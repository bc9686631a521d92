"""Pydantic models for study queue, review and promotion endpoints."""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictInt


class QueueItemRead(BaseModel):
    """Card entry returned in the study queue."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    front: str
    back: str | None = None
    state: str
    due_at: datetime | None = None


class QueueMetaRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    due_count: int
    new_selected: int
    daily_goal: int


class StudyQueueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    due: list[QueueItemRead]
    new: list[QueueItemRead]
    meta: QueueMetaRead


class ReviewRequest(BaseModel):
    """Payload for submitting a review."""

    card_id: uuid.UUID
    rating: StrictInt = Field(..., description="Rating from 0 (Again) to 3 (Easy)")


class ReviewResponse(BaseModel):
    """Card schedule after a review."""

    model_config = ConfigDict(from_attributes=True)

    card_id: uuid.UUID
    state: str
    due_at: datetime
    interval_days: int
    ease_factor: float
    reps: int
    lapses: int
    last_reviewed_at: datetime
    last_rating: int


class PromoteNewRequest(BaseModel):
    count: StrictInt | None = Field(None, description="Cards to introduce; defaults to the remaining allowance")


class PromotedCardRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    source: str


class PromoteNewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    promoted: list[PromotedCardRead]
    remaining_allowance: int
    progress_recorded: bool
