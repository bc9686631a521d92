"""Per-request deadline and cancellation tracking."""
from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, TypeVar

from loguru import logger

from flashdeck.utils.exceptions import OperationCancelled, OperationTimeout

T = TypeVar("T")

_bounded_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="flashdeck-bounded")


class OperationContext:
    """Carries the caller's deadline and cancellation flag through a multi-step operation."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self.deadline = None if timeout_seconds is None else time.monotonic() + timeout_seconds
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def check(self, step: str) -> None:
        """Raise if the request was cancelled or its deadline has passed."""

        if self.cancelled:
            logger.info("Operation cancelled by caller", step=step)
            raise OperationCancelled(f"Request cancelled before {step}")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise OperationTimeout(f"Deadline exceeded before {step}")

    def call(self, step: str, fn: Callable[..., T], *args) -> T:
        """Run ``fn`` bounded by the remaining deadline."""

        self.check(step)
        remaining = self.remaining()
        if remaining is None:
            return fn(*args)
        future = _bounded_executor.submit(fn, *args)
        try:
            return future.result(timeout=remaining)
        except FutureTimeout as exc:
            future.cancel()
            raise OperationTimeout(f"{step} exceeded its deadline") from exc


def unbounded() -> OperationContext:
    return OperationContext()
