"""Per-user study settings (maintained elsewhere, read here)."""
from sqlalchemy import CheckConstraint, Column, DateTime, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from flashdeck.db.base import Base


class UserSettings(Base):
    __tablename__ = "user_settings"
    __table_args__ = (
        CheckConstraint("daily_goal BETWEEN 1 AND 200", name="ck_user_settings_daily_goal"),
        CheckConstraint("new_limit BETWEEN 0 AND 50", name="ck_user_settings_new_limit"),
    )

    user_id = Column(UUID(as_uuid=True), primary_key=True)
    daily_goal = Column(Integer, nullable=True)
    new_limit = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
