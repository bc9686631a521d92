"""Service layer package."""

from flashdeck.services.audit import AuditLogService
from flashdeck.services.batch_save import BatchSaver
from flashdeck.services.card_store import CardStore
from flashdeck.services.flashcards import FlashcardService
from flashdeck.services.idempotency import IdempotencyStore
from flashdeck.services.progress import ProgressService
from flashdeck.services.promoter import NewCardPromoter
from flashdeck.services.queue import QueueBuilder
from flashdeck.services.review import ReviewEngine
from flashdeck.services.settings_provider import SettingsProvider

__all__ = [
    "AuditLogService",
    "BatchSaver",
    "CardStore",
    "FlashcardService",
    "IdempotencyStore",
    "NewCardPromoter",
    "ProgressService",
    "QueueBuilder",
    "ReviewEngine",
    "SettingsProvider",
]
