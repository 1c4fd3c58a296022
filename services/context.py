"""Caller-supplied cancellation for service operations."""

from __future__ import annotations

import time
from threading import Event
from typing import Callable, Optional

from models.errors import OperationCancelled


class CallContext:
    """Carries a cancellation flag and an optional deadline.

    The service checks the context before opening each transaction and before
    committing a write, so a cancelled call never commits partial work.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._monotonic = monotonic
        self._cancelled = Event()
        self.deadline = None if timeout is None else monotonic() + timeout

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and self._monotonic() >= self.deadline

    def raise_if_cancelled(self, operation: str, entity_id: Optional[str] = None) -> None:
        if self.cancelled:
            raise OperationCancelled(operation, entity_id)
