"""Pytest fixtures for service and API tests."""

import os
import uuid
from collections.abc import Generator
from datetime import date, datetime, timedelta, timezone

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///./flashdeck-test.db")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from flashdeck.api import deps
from flashdeck.config import settings
from flashdeck.core.canonical import canonicalize, content_hash, content_key
from flashdeck.core.security import ALGORITHM
from flashdeck.db import models  # noqa: F401  # Imported for side effects
from flashdeck.db.base import Base
from flashdeck.db.models import CardSource, CardState, DailyProgress, Flashcard, UserSettings
from flashdeck.main import create_app

FROZEN_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock pinned to a fixed instant; tests move it explicitly."""

    def __init__(self, now: datetime = FROZEN_NOW) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def today_key(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture()
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Let SQLAlchemy own BEGIN so SAVEPOINTs behave under pysqlite
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(db_engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine, expire_on_commit=False
    )
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def make_card(db_session: Session, clock: FrozenClock):
    """Insert a card directly; ``age`` orders new cards oldest first."""

    counter = {"value": 0}

    def _make_card(
        user_id: uuid.UUID,
        front: str | None = None,
        back: str | None = None,
        *,
        age: int = 0,
        **overrides,
    ) -> Flashcard:
        counter["value"] += 1
        front = front or f"front {counter['value']}"
        back = back or f"back {counter['value']}"
        values = {
            "user_id": user_id,
            "front": front,
            "back": back,
            "source": CardSource.MANUAL.value,
            "content_hash": content_hash(content_key(canonicalize(front), canonicalize(back))),
            "state": CardState.NEW.value,
            "created_at": clock.now() - timedelta(hours=age) + timedelta(microseconds=counter["value"]),
        }
        values.update(overrides)
        card = Flashcard(**values)
        db_session.add(card)
        db_session.commit()
        return card

    return _make_card


@pytest.fixture()
def make_due_card(make_card, clock: FrozenClock):
    def _make_due_card(user_id: uuid.UUID, *, overdue_hours: int = 1, **overrides) -> Flashcard:
        values = {
            "state": CardState.REVIEW.value,
            "due_at": clock.now() - timedelta(hours=overdue_hours),
            "interval_days": 4,
            "reps": 3,
            "introduced_on": clock.today_key() - timedelta(days=10),
        }
        values.update(overrides)
        return make_card(user_id, **values)

    return _make_due_card


@pytest.fixture()
def set_user_settings(db_session: Session):
    def _set(user_id: uuid.UUID, *, daily_goal: int | None = None, new_limit: int | None = None) -> None:
        db_session.merge(UserSettings(user_id=user_id, daily_goal=daily_goal, new_limit=new_limit))
        db_session.commit()

    return _set


@pytest.fixture()
def set_progress(db_session: Session, clock: FrozenClock):
    def _set(user_id: uuid.UUID, day: date | None = None, **counters) -> None:
        db_session.merge(
            DailyProgress(user_id=user_id, date_utc=day or clock.today_key(), **counters)
        )
        db_session.commit()

    return _set


@pytest.fixture()
def client(db_session: Session, clock: FrozenClock) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client


def mint_token(
    subject, *, token_type: str = "access", expires_in: timedelta = timedelta(hours=1)
) -> str:
    """Sign a token the way the identity service does."""

    claims = {"sub": str(subject), "type": token_type, "exp": datetime.now(timezone.utc) + expires_in}
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=ALGORITHM)


@pytest.fixture()
def token_for():
    return mint_token


@pytest.fixture()
def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user_id)}"}
