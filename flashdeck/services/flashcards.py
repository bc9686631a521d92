"""Manual flashcard management: create, browse, edit and soft delete."""
from __future__ import annotations

import uuid

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from flashdeck.core.canonical import Canonicalizer, canonicalize, content_hash, content_key
from flashdeck.core.clock import utcnow
from flashdeck.db.models.flashcard import CardSource, Flashcard
from flashdeck.db.session import unit_of_work
from flashdeck.services.card_store import CardSnapshot
from flashdeck.utils.exceptions import ConflictError, NotFoundError, ValidationError

MAX_TEXT_LENGTH = 1000
MAX_PAGE_SIZE = 100

_ORDERINGS = {
    "created_at.desc": (Flashcard.created_at.desc(), Flashcard.id.desc()),
    "created_at.asc": (Flashcard.created_at.asc(), Flashcard.id.asc()),
    "due_at.asc": (Flashcard.due_at.asc(), Flashcard.id.asc()),
}
ORDERINGS = tuple(_ORDERINGS)


class FlashcardService:
    def __init__(self, db: Session, *, canonicalizer: Canonicalizer = canonicalize) -> None:
        self.db = db
        self.canonicalize = canonicalizer

    def list_flashcards(
        self,
        user_id: uuid.UUID,
        *,
        limit: int = 25,
        offset: int = 0,
        order: str = "created_at.desc",
    ) -> tuple[list[CardSnapshot], int]:
        """Return a page of live cards and the total number of live cards."""

        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", {"field": "limit"})
        if offset < 0:
            raise ValidationError("offset must not be negative", {"field": "offset"})
        if order not in _ORDERINGS:
            raise ValidationError(f"order must be one of {list(ORDERINGS)}", {"field": "order"})

        stmt = (
            select(Flashcard)
            .where(Flashcard.live_clause(user_id))
            .order_by(*_ORDERINGS[order])
            .offset(offset)
            .limit(limit)
        )
        items = [CardSnapshot.from_row(card) for card in self.db.scalars(stmt)]
        total = self.db.scalar(
            select(func.count()).select_from(Flashcard).where(Flashcard.live_clause(user_id))
        )
        return items, int(total or 0)

    def get_flashcard(self, user_id: uuid.UUID, card_id: uuid.UUID) -> CardSnapshot:
        card = self.db.scalars(
            select(Flashcard).where(Flashcard.id == card_id, Flashcard.live_clause(user_id))
        ).first()
        if card is None:
            raise NotFoundError("Card not found")
        return CardSnapshot.from_row(card)

    def create_manual(self, user_id: uuid.UUID, front: str, back: str) -> CardSnapshot:
        front, back = _clean(front, "front"), _clean(back, "back")
        digest = self._content_hash(front, back)

        with unit_of_work(self.db):
            self._ensure_unique(user_id, digest)
            card = Flashcard(
                user_id=user_id,
                front=front,
                back=back,
                source=CardSource.MANUAL.value,
                content_hash=digest,
            )
            self.db.add(card)
            self.db.flush()

        logger.info("Flashcard created", user_id=str(user_id), card_id=str(card.id))
        return CardSnapshot.from_row(card)

    def update_content(
        self,
        user_id: uuid.UUID,
        card_id: uuid.UUID,
        *,
        front: str | None = None,
        back: str | None = None,
    ) -> CardSnapshot:
        """Edit a card's text; scheduling state is left untouched."""

        if front is None and back is None:
            raise ValidationError("at least one of front or back must be provided")

        with unit_of_work(self.db):
            card = self.db.scalars(
                select(Flashcard).where(Flashcard.id == card_id, Flashcard.user_id == user_id)
            ).first()
            if card is None:
                raise NotFoundError("Card not found")
            if card.deleted_at is not None:
                raise ConflictError("Card has been deleted", {"card_id": str(card_id)})

            new_front = card.front if front is None else _clean(front, "front")
            new_back = card.back if back is None else _clean(back, "back")
            digest = self._content_hash(new_front, new_back)
            if digest != card.content_hash:
                self._ensure_unique(user_id, digest, exclude_id=card.id)

            card.front = new_front
            card.back = new_back
            card.content_hash = digest
            if card.source == CardSource.AI.value:
                card.source = CardSource.AI_EDITED.value
            card.updated_at = utcnow()
            self.db.flush()

        logger.info("Flashcard updated", user_id=str(user_id), card_id=str(card_id))
        return CardSnapshot.from_row(card)

    def soft_delete(self, user_id: uuid.UUID, card_id: uuid.UUID) -> None:
        with unit_of_work(self.db):
            card = self.db.scalars(
                select(Flashcard).where(Flashcard.id == card_id, Flashcard.live_clause(user_id))
            ).first()
            if card is None:
                raise NotFoundError("Card not found")
            card.deleted_at = utcnow()
            self.db.flush()

        logger.info("Flashcard deleted", user_id=str(user_id), card_id=str(card_id))

    def _content_hash(self, front: str, back: str) -> str:
        front_canonical = self.canonicalize(front)
        back_canonical = self.canonicalize(back)
        if front_canonical.lower() == back_canonical.lower():
            raise ValidationError("front and back must differ", {"field": "back"})
        return content_hash(content_key(front_canonical, back_canonical))

    def _ensure_unique(
        self, user_id: uuid.UUID, digest: str, *, exclude_id: uuid.UUID | None = None
    ) -> None:
        stmt = select(Flashcard.id).where(
            Flashcard.live_clause(user_id), Flashcard.content_hash == digest
        )
        if exclude_id is not None:
            stmt = stmt.where(Flashcard.id != exclude_id)
        if self.db.scalars(stmt.limit(1)).first() is not None:
            raise ConflictError("A card with the same content already exists")


def _clean(value: str, field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} must not be empty", {"field": field_name})
    if len(text) > MAX_TEXT_LENGTH:
        raise ValidationError(
            f"{field_name} exceeds {MAX_TEXT_LENGTH} characters", {"field": field_name}
        )
    return text
