"""Tests for manual flashcard management."""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from flashdeck.services.flashcards import FlashcardService
from flashdeck.utils.exceptions import ConflictError, NotFoundError, ValidationError


def test_create_manual_card(db_session, user_id) -> None:
    card = FlashcardService(db_session).create_manual(user_id, "  der Hund ", "the dog")

    assert card.front == "der Hund"
    assert card.back == "the dog"
    assert card.source == "manual"
    assert card.state == "new"
    assert card.due_at is None
    assert card.ease_factor == pytest.approx(2.5)


def test_create_duplicate_content_conflicts(db_session, user_id) -> None:
    service = FlashcardService(db_session)
    service.create_manual(user_id, "der Hund", "the dog")

    with pytest.raises(ConflictError):
        service.create_manual(user_id, "Der  HUND", "The Dog")


def test_same_content_for_different_users_is_allowed(db_session, user_id) -> None:
    service = FlashcardService(db_session)
    service.create_manual(user_id, "der Hund", "the dog")

    other = service.create_manual(uuid.uuid4(), "der Hund", "the dog")

    assert other.front == "der Hund"


@pytest.mark.parametrize(
    ("front", "back"),
    [("", "dog"), ("Hund", "   "), ("Hund", "hund"), ("x" * 1001, "long")],
)
def test_create_rejects_invalid_content(db_session, user_id, front, back) -> None:
    with pytest.raises(ValidationError):
        FlashcardService(db_session).create_manual(user_id, front, back)


def test_list_returns_live_cards_with_total(db_session, clock, user_id, make_card) -> None:
    oldest = make_card(user_id, age=3)
    newest = make_card(user_id, age=1)
    make_card(user_id, age=2, deleted_at=clock.now())
    make_card(uuid.uuid4())
    service = FlashcardService(db_session)

    items, total = service.list_flashcards(user_id)
    assert total == 2
    assert [item.id for item in items] == [newest.id, oldest.id]

    items, total = service.list_flashcards(user_id, limit=1, offset=1, order="created_at.asc")
    assert total == 2
    assert [item.id for item in items] == [newest.id]


@pytest.mark.parametrize(
    "kwargs", [{"limit": 0}, {"limit": 101}, {"offset": -1}, {"order": "front.asc"}]
)
def test_list_rejects_bad_paging(db_session, user_id, kwargs) -> None:
    with pytest.raises(ValidationError):
        FlashcardService(db_session).list_flashcards(user_id, **kwargs)


def test_get_flashcard_checks_ownership(db_session, user_id, make_card) -> None:
    card = make_card(user_id)
    foreign = make_card(uuid.uuid4())
    service = FlashcardService(db_session)

    assert service.get_flashcard(user_id, card.id).id == card.id
    with pytest.raises(NotFoundError):
        service.get_flashcard(user_id, foreign.id)
    with pytest.raises(NotFoundError):
        service.get_flashcard(user_id, uuid.uuid4())


def test_update_content_keeps_schedule(db_session, clock, user_id, make_due_card) -> None:
    card = make_due_card(user_id, source="ai")

    updated = FlashcardService(db_session).update_content(user_id, card.id, back="a big dog")

    assert updated.back == "a big dog"
    assert updated.front == card.front
    assert updated.source == "ai_edited"
    assert updated.interval_days == 4
    assert updated.due_at == clock.now() - timedelta(hours=1)


def test_update_requires_a_field(db_session, user_id, make_card) -> None:
    card = make_card(user_id)

    with pytest.raises(ValidationError):
        FlashcardService(db_session).update_content(user_id, card.id)


def test_update_into_existing_content_conflicts(db_session, user_id, make_card) -> None:
    make_card(user_id, "Hund", "dog")
    card = make_card(user_id, "Katze", "cat")

    with pytest.raises(ConflictError):
        FlashcardService(db_session).update_content(user_id, card.id, front="hund", back="DOG")


def test_update_deleted_card_conflicts(db_session, clock, user_id, make_card) -> None:
    card = make_card(user_id, deleted_at=clock.now())

    with pytest.raises(ConflictError):
        FlashcardService(db_session).update_content(user_id, card.id, front="new front")


def test_soft_delete_frees_content_for_reuse(db_session, user_id) -> None:
    service = FlashcardService(db_session)
    card = service.create_manual(user_id, "Hund", "dog")

    service.soft_delete(user_id, card.id)

    with pytest.raises(NotFoundError):
        service.get_flashcard(user_id, card.id)
    with pytest.raises(NotFoundError):
        service.soft_delete(user_id, card.id)
    assert service.create_manual(user_id, "Hund", "dog").id != card.id
