"""Pydantic schemas package."""

from flashdeck.schemas.auth import TokenPayload
from flashdeck.schemas.flashcard import (
    BatchSaveItem,
    BatchSaveRequest,
    BatchSaveResponse,
    FlashcardCreate,
    FlashcardListResponse,
    FlashcardRead,
    FlashcardUpdate,
    SavedItemRead,
    SkippedItemRead,
)
from flashdeck.schemas.progress import DailyProgressRead, GoalOverrideUpdate
from flashdeck.schemas.srs import (
    PromotedCardRead,
    PromoteNewRequest,
    PromoteNewResponse,
    QueueItemRead,
    QueueMetaRead,
    ReviewRequest,
    ReviewResponse,
    StudyQueueResponse,
)

__all__ = [
    "TokenPayload",
    "BatchSaveItem",
    "BatchSaveRequest",
    "BatchSaveResponse",
    "FlashcardCreate",
    "FlashcardListResponse",
    "FlashcardRead",
    "FlashcardUpdate",
    "SavedItemRead",
    "SkippedItemRead",
    "DailyProgressRead",
    "GoalOverrideUpdate",
    "PromotedCardRead",
    "PromoteNewRequest",
    "PromoteNewResponse",
    "QueueItemRead",
    "QueueMetaRead",
    "ReviewRequest",
    "ReviewResponse",
    "StudyQueueResponse",
]
