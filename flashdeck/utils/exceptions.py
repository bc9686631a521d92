"""Error taxonomy shared by services and the HTTP layer."""
from typing import Any, Dict, Optional

from fastapi import status
from loguru import logger
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError


class FlashdeckError(Exception):
    """Base exception for the application."""

    code = "server_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(FlashdeckError):
    """No resolvable user for the request."""

    code = "unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(FlashdeckError):
    """Record is absent, deleted or owned by someone else."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(FlashdeckError):
    """Input failed validation before any mutation happened."""

    code = "validation_failed"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(FlashdeckError):
    """Duplicate content or a lost optimistic-concurrency race."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class OperationTimeout(FlashdeckError):
    """An external call exceeded its deadline."""

    code = "timeout"
    status_code = status.HTTP_408_REQUEST_TIMEOUT


class OperationCancelled(FlashdeckError):
    """The caller abandoned the request before it finished."""

    code = "cancelled"
    status_code = 499


class InternalError(FlashdeckError):
    """Unexpected store failure."""


_CHECK_MARKERS = ("check constraint", "23514")
_TIMEOUT_MARKERS = ("statement timeout", "canceling statement", "lock timeout", "timed out")


def translate_db_error(error: SQLAlchemyError) -> FlashdeckError:
    """Map a raw SQLAlchemy error onto the taxonomy."""

    text = str(getattr(error, "orig", None) or error).lower()
    if isinstance(error, IntegrityError):
        if any(marker in text for marker in _CHECK_MARKERS):
            return ValidationError("Value violates a storage constraint")
        return ConflictError("Record conflicts with existing data")
    if isinstance(error, PoolTimeoutError):
        return OperationTimeout("Timed out waiting for a database connection")
    if isinstance(error, OperationalError) and any(marker in text for marker in _TIMEOUT_MARKERS):
        return OperationTimeout("Database statement timed out")
    logger.error(f"Database error: {error}")
    return InternalError("Database operation failed. Please try again later.")


def error_payload(error: FlashdeckError) -> Dict[str, Any]:
    """Return the JSON body used for error responses."""

    payload: Dict[str, Any] = {"error": error.message, "code": error.code}
    if error.details:
        payload["details"] = error.details
    return payload


def log_error(error: FlashdeckError) -> None:
    """Log an error at a level matching its severity."""

    if isinstance(error, (InternalError, OperationTimeout)) or type(error) is FlashdeckError:
        logger.error(f"{error.code}: {error.message}")
    else:
        logger.warning(f"{error.code}: {error.message}")
