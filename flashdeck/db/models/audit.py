"""Audit trail and telemetry event models."""
from sqlalchemy import BigInteger, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from flashdeck.db.base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
_BigIntId = BigInteger().with_variant(Integer(), "sqlite")


class AuditLog(Base):
    """Append-only record of state-changing study actions."""

    __tablename__ = "audit_log"

    id = Column(_BigIntId, primary_key=True, autoincrement=True)
    acted_by = Column(UUID(as_uuid=True), nullable=False, index=True)
    target_user_id = Column(UUID(as_uuid=True), nullable=True)
    action = Column(String(50), nullable=False)
    card_id = Column(UUID(as_uuid=True), nullable=True)
    details = Column(JSONB().with_variant(JSON(), "sqlite"), default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class EventLog(Base):
    """Telemetry events; ``save`` events double as the batch-save idempotency ledger."""

    __tablename__ = "event_log"

    id = Column(_BigIntId, primary_key=True, autoincrement=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    event_name = Column(String(50), nullable=False)
    request_id = Column(String(255), nullable=True, index=True)
    properties = Column(JSONB().with_variant(JSON(), "sqlite"), default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
