"""Pydantic models for flashcard management endpoints."""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class FlashcardRead(BaseModel):
    """Card content together with its scheduling state."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    front: str
    back: str
    source: str
    state: str
    due_at: datetime | None = None
    interval_days: int
    ease_factor: float
    reps: int
    lapses: int
    introduced_on: date | None = None
    last_reviewed_at: datetime | None = None
    last_rating: int | None = None
    created_at: datetime | None = None


class FlashcardListResponse(BaseModel):
    total: int
    items: list[FlashcardRead]


class FlashcardCreate(BaseModel):
    front: str
    back: str


class FlashcardUpdate(BaseModel):
    front: str | None = None
    back: str | None = None


class BatchSaveItem(BaseModel):
    """One accepted card proposal."""

    front: str
    back: str
    source: str = Field(..., description="Either 'ai' or 'ai_edited'")


class BatchSaveRequest(BaseModel):
    items: list[BatchSaveItem]


class SavedItemRead(BaseModel):
    id: str
    source: str


class SkippedItemRead(BaseModel):
    front: str
    reason: str


class BatchSaveResponse(BaseModel):
    saved: list[SavedItemRead]
    skipped: list[SkippedItemRead]
