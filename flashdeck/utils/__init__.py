"""Utility helpers package."""

from flashdeck.utils.exceptions import (
    ConflictError,
    FlashdeckError,
    InternalError,
    NotFoundError,
    OperationCancelled,
    OperationTimeout,
    UnauthorizedError,
    ValidationError,
)

__all__ = [
    "ConflictError",
    "FlashdeckError",
    "InternalError",
    "NotFoundError",
    "OperationCancelled",
    "OperationTimeout",
    "UnauthorizedError",
    "ValidationError",
]
