"""Read-only access to per-user study settings."""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from flashdeck.db.models.settings import UserSettings


@dataclass(slots=True)
class StudySettings:
    """Settings as stored; ``None`` means the learner never set the value."""

    daily_goal: int | None
    new_limit: int | None


class SettingsProvider:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: uuid.UUID) -> StudySettings:
        row = self.db.get(UserSettings, user_id)
        if row is None:
            return StudySettings(daily_goal=None, new_limit=None)
        return StudySettings(daily_goal=row.daily_goal, new_limit=row.new_limit)
