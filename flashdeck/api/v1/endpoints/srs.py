"""Study queue, review and new-card promotion endpoints."""
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from flashdeck.api import deps
from flashdeck.core.clock import Clock
from flashdeck.core.context import OperationContext
from flashdeck.schemas import (
    PromoteNewRequest,
    PromoteNewResponse,
    ReviewRequest,
    ReviewResponse,
    StudyQueueResponse,
)
from flashdeck.services.promoter import NewCardPromoter
from flashdeck.services.queue import QueueBuilder
from flashdeck.services.review import ReviewEngine

router = APIRouter(prefix="/srs", tags=["srs"])


@router.get("/queue", response_model=StudyQueueResponse)
def get_study_queue(
    *,
    goal_hint: int | None = Query(None, description="Client-side daily goal used when nothing else is set"),
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
    clock: Clock = Depends(deps.get_clock),
    ctx: OperationContext = Depends(deps.get_request_context),
) -> StudyQueueResponse:
    """Return today's due cards followed by new cards, within the remaining goal."""

    queue = QueueBuilder(db, clock=clock).build(user_id, goal_hint, ctx=ctx)
    return StudyQueueResponse.model_validate(queue)


@router.post("/review", response_model=ReviewResponse)
def submit_review(
    payload: ReviewRequest,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
    clock: Clock = Depends(deps.get_clock),
    ctx: OperationContext = Depends(deps.get_request_context),
) -> ReviewResponse:
    """Apply a rating to a card and return its new schedule."""

    result = ReviewEngine(db, clock=clock).review(user_id, payload.card_id, payload.rating, ctx=ctx)
    return ReviewResponse.model_validate(result)


@router.post("/promote-new", response_model=PromoteNewResponse)
def promote_new_cards(
    payload: PromoteNewRequest | None = None,
    db: Session = Depends(deps.get_db),
    user_id: uuid.UUID = Depends(deps.get_current_user_id),
    clock: Clock = Depends(deps.get_clock),
    ctx: OperationContext = Depends(deps.get_request_context),
) -> PromoteNewResponse:
    """Introduce the oldest new cards against today's allowance."""

    count = payload.count if payload else None
    result = NewCardPromoter(db, clock=clock).promote(user_id, count, ctx=ctx)
    return PromoteNewResponse.model_validate(result)
