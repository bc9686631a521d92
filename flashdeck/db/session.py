"""Database session and engine management."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from flashdeck.config import settings
from flashdeck.core.context import OperationContext
from flashdeck.utils.exceptions import FlashdeckError, translate_db_error

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    poolclass=QueuePool,
    pool_size=10,
    max_overflow=20,
    pool_timeout=settings.DATABASE_POOL_TIMEOUT_SECONDS,
    pool_recycle=3600,  # Recycle connections after 1 hour
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Keep snapshots usable after commit
)


def get_db() -> Iterator[Session]:
    """Yield a database session for request lifecycle."""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def bound_statements(db: Session, ctx: OperationContext | None) -> None:
    """Cap statements in the current transaction at the caller's remaining deadline.

    Only PostgreSQL honours ``statement_timeout``; other dialects rely on the
    ``ctx.check`` calls between steps.
    """
    remaining = None if ctx is None else ctx.remaining()
    if remaining is None or db.get_bind().dialect.name != "postgresql":
        return
    timeout_ms = max(int(remaining * 1000), 1)
    db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))


@contextmanager
def unit_of_work(db: Session, *, ctx: OperationContext | None = None) -> Iterator[Session]:
    """Commit on success, roll back and translate store errors otherwise."""
    try:
        bound_statements(db, ctx)
        yield db
        db.commit()
    except FlashdeckError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise translate_db_error(exc) from exc
