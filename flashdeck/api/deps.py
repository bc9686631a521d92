"""Shared API dependencies."""
from __future__ import annotations

import uuid

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from flashdeck.config import settings
from flashdeck.core.clock import Clock, SystemClock
from flashdeck.core.context import OperationContext
from flashdeck.core.security import InvalidTokenError, learner_id_from_token
from flashdeck.db.session import get_db
from flashdeck.utils.exceptions import UnauthorizedError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

_system_clock = SystemClock()

__all__ = [
    "get_clock",
    "get_current_user_id",
    "get_db",
    "get_batch_context",
    "get_request_context",
]


def get_current_user_id(token: str | None = Depends(oauth2_scheme)) -> uuid.UUID:
    """Resolve the authenticated learner id from the bearer token's ``sub`` claim."""

    if not token:
        raise UnauthorizedError("Not authenticated")

    try:
        return learner_id_from_token(token)
    except InvalidTokenError as exc:
        raise UnauthorizedError("Could not validate credentials") from exc


def get_clock() -> Clock:
    return _system_clock


def get_request_context() -> OperationContext:
    """Deadline for a single study operation."""

    return OperationContext(settings.REQUEST_TIMEOUT_SECONDS)


def get_batch_context() -> OperationContext:
    return OperationContext(settings.BATCH_SAVE_TIMEOUT_SECONDS)
