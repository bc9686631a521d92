"""Flashcard management and batch-save endpoints."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Header, Query, Response, status
from sqlalchemy.orm import Session

from flashdeck.api import deps
from flashdeck.core.clock import Clock
from flashdeck.core.context import OperationContext
from flashdeck.schemas import (
    BatchSaveRequest,
    BatchSaveResponse,
    FlashcardCreate,
    FlashcardListResponse,
    FlashcardRead,
    FlashcardUpdate,
)
from flashdeck.services.batch_save import BatchItem, BatchSaver
from flashdeck.services.flashcards import FlashcardService

router = APIRouter(prefix="/flashcards", tags=["flashcards"])


@router.get("", response_model=FlashcardListResponse)
def list_flashcards(
    *,
    limit: int = Query(default=25),
    offset: int = Query(default=0),
    order: str = Query(default="created_at.desc"),
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> FlashcardListResponse:
    items, total = FlashcardService(db).list_flashcards(user_id, limit=limit, offset=offset, order=order)
    return FlashcardListResponse(
        total=total, items=[FlashcardRead.model_validate(item) for item in items]
    )


@router.post("", response_model=FlashcardRead, status_code=status.HTTP_201_CREATED)
def create_flashcard(
    payload: FlashcardCreate,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> FlashcardRead:
    """Create a manual card."""

    card = FlashcardService(db).create_manual(user_id, payload.front, payload.back)
    return FlashcardRead.model_validate(card)


@router.post("/batch-save", response_model=BatchSaveResponse)
def batch_save_flashcards(
    payload: BatchSaveRequest,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key", max_length=255),
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
    clock: Clock = Depends(deps.get_clock),
    ctx: OperationContext = Depends(deps.get_batch_context),
) -> BatchSaveResponse:
    """Persist accepted AI proposals once per idempotency key."""

    items = [BatchItem(front=item.front, back=item.back, source=item.source) for item in payload.items]
    result = BatchSaver(db, clock=clock).save(user_id, items, idempotency_key, ctx=ctx)
    return BatchSaveResponse.model_validate(result.to_payload())


@router.get("/{card_id}", response_model=FlashcardRead)
def get_flashcard(
    card_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> FlashcardRead:
    return FlashcardRead.model_validate(FlashcardService(db).get_flashcard(user_id, card_id))


@router.patch("/{card_id}", response_model=FlashcardRead)
def update_flashcard(
    card_id: uuid.UUID,
    payload: FlashcardUpdate,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> FlashcardRead:
    """Edit a card's front and/or back."""

    card = FlashcardService(db).update_content(user_id, card_id, front=payload.front, back=payload.back)
    return FlashcardRead.model_validate(card)


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_flashcard(
    card_id: uuid.UUID,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
) -> Response:
    FlashcardService(db).soft_delete(user_id, card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
