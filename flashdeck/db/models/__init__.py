"""Database models package."""
from flashdeck.db.models.audit import AuditLog, EventLog
from flashdeck.db.models.flashcard import CardSource, CardState, Eligibility, Flashcard
from flashdeck.db.models.progress import DailyProgress
from flashdeck.db.models.settings import UserSettings

__all__ = [
    "AuditLog",
    "CardSource",
    "CardState",
    "DailyProgress",
    "Eligibility",
    "EventLog",
    "Flashcard",
    "UserSettings",
]
