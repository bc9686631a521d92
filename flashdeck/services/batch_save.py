"""Idempotent, deduplicated batch persistence of accepted card proposals."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Sequence

from loguru import logger
from sqlalchemy.orm import Session

from flashdeck.config import settings
from flashdeck.core.canonical import Canonicalizer, canonicalize, content_hash, content_key
from flashdeck.core.clock import Clock, SystemClock
from flashdeck.core.context import OperationContext, unbounded
from flashdeck.db.models.flashcard import DEFAULT_EASE_FACTOR, CardSource, CardState, Flashcard
from flashdeck.db.session import bound_statements, unit_of_work
from flashdeck.db.upsert import dialect_insert
from flashdeck.services.idempotency import IdempotencyStore
from flashdeck.utils.exceptions import ValidationError

MAX_TEXT_LENGTH = 1000
BATCH_SOURCES = frozenset({CardSource.AI.value, CardSource.AI_EDITED.value})
DUPLICATE = "duplicate"


@dataclass(slots=True)
class BatchItem:
    front: str
    back: str
    source: str


@dataclass(slots=True)
class SavedItem:
    id: str
    source: str


@dataclass(slots=True)
class SkippedItem:
    front: str
    reason: str


@dataclass(slots=True)
class BatchSaveResult:
    saved: list[SavedItem] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "saved": [{"id": item.id, "source": item.source} for item in self.saved],
            "skipped": [{"front": item.front, "reason": item.reason} for item in self.skipped],
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "BatchSaveResult":
        return cls(
            saved=[SavedItem(id=item["id"], source=item["source"]) for item in payload.get("saved", [])],
            skipped=[
                SkippedItem(front=item["front"], reason=item["reason"])
                for item in payload.get("skipped", [])
            ],
        )


@dataclass(slots=True)
class _Candidate:
    front: str
    back: str
    source: str
    content_hash: str


class BatchSaver:
    """Deduplicate proposals and persist survivors exactly once per idempotency key."""

    def __init__(
        self,
        db: Session,
        *,
        clock: Clock | None = None,
        canonicalizer: Canonicalizer = canonicalize,
        idempotency_store: IdempotencyStore | None = None,
    ) -> None:
        self.db = db
        self.clock = clock or SystemClock()
        self.canonicalize = canonicalizer
        self.idempotency = idempotency_store or IdempotencyStore(db)

    def save(
        self,
        user_id: uuid.UUID,
        items: Sequence[BatchItem],
        idempotency_key: str | None = None,
        *,
        ctx: OperationContext | None = None,
    ) -> BatchSaveResult:
        ctx = ctx or unbounded()
        self._validate(items)

        if idempotency_key:
            ctx.check("idempotency lookup")
            bound_statements(self.db, ctx)
            stored = self.idempotency.get(user_id, idempotency_key)
            if stored is not None:
                logger.info("Replaying stored batch save", user_id=str(user_id), key=idempotency_key)
                return BatchSaveResult.from_payload(stored)
        request_id = idempotency_key or str(uuid.uuid4())

        # Dedup within the request; the first occurrence wins.
        seen: set[str] = set()
        candidates: list[_Candidate] = []
        skipped: list[SkippedItem] = []
        for item in items:
            front_canonical = ctx.call("canonicalization", self.canonicalize, item.front)
            back_canonical = ctx.call("canonicalization", self.canonicalize, item.back)
            key = content_key(front_canonical, back_canonical)
            if key in seen:
                skipped.append(SkippedItem(front=item.front.strip(), reason=DUPLICATE))
                continue
            seen.add(key)
            candidates.append(
                _Candidate(
                    front=item.front.strip(),
                    back=item.back.strip(),
                    source=item.source,
                    content_hash=content_hash(key),
                )
            )

        with unit_of_work(self.db, ctx=ctx):
            ctx.check("card insert")
            inserted = self._insert_ignoring_duplicates(user_id, candidates)
            saved = [
                SavedItem(id=str(inserted[candidate.content_hash]), source=candidate.source)
                for candidate in candidates
                if candidate.content_hash in inserted
            ]
            # Survivors that collided with an already stored card
            skipped.extend(
                SkippedItem(front=candidate.front, reason=DUPLICATE)
                for candidate in candidates
                if candidate.content_hash not in inserted
            )
            payload = BatchSaveResult(saved=saved, skipped=skipped).to_payload()
            self.idempotency.put(user_id, request_id, payload)

        logger.info(
            "Batch save completed",
            user_id=str(user_id),
            request_id=request_id,
            saved=len(saved),
            skipped=len(skipped),
        )
        return BatchSaveResult.from_payload(payload)

    def _validate(self, items: Sequence[BatchItem]) -> None:
        max_items = settings.BATCH_SAVE_MAX_ITEMS
        if not items:
            raise ValidationError("items must contain at least one entry", {"field": "items"})
        if len(items) > max_items:
            raise ValidationError(
                f"items may contain at most {max_items} entries",
                {"field": "items", "max": max_items, "received": len(items)},
            )
        for index, item in enumerate(items):
            for field_name in ("front", "back"):
                value = getattr(item, field_name)
                if not isinstance(value, str) or not value.strip():
                    raise ValidationError(f"items[{index}].{field_name} must not be empty")
                if len(value.strip()) > MAX_TEXT_LENGTH:
                    raise ValidationError(
                        f"items[{index}].{field_name} exceeds {MAX_TEXT_LENGTH} characters"
                    )
            if item.source not in BATCH_SOURCES:
                raise ValidationError(f"items[{index}].source must be one of {sorted(BATCH_SOURCES)}")

    def _insert_ignoring_duplicates(
        self, user_id: uuid.UUID, candidates: list[_Candidate]
    ) -> dict[str, uuid.UUID]:
        """Insert in one statement; return ``content_hash -> id`` for rows actually written."""

        if not candidates:
            return {}
        now = self.clock.now()
        rows = [
            {
                "id": uuid.uuid4(),
                "user_id": user_id,
                "front": candidate.front,
                "back": candidate.back,
                "source": candidate.source,
                "content_hash": candidate.content_hash,
                "state": CardState.NEW.value,
                "interval_days": 0,
                "ease_factor": DEFAULT_EASE_FACTOR,
                "reps": 0,
                "lapses": 0,
                "version": 1,
                # Keep request order for FIFO new-card selection
                "created_at": now + timedelta(microseconds=position),
            }
            for position, candidate in enumerate(candidates)
        ]
        stmt = dialect_insert(self.db, Flashcard.__table__).values(rows)
        stmt = stmt.on_conflict_do_nothing(
            index_elements=[Flashcard.user_id, Flashcard.content_hash],
            index_where=Flashcard.deleted_at.is_(None),
        ).returning(Flashcard.id, Flashcard.content_hash)
        return {row.content_hash: row.id for row in self.db.execute(stmt)}
