"""Cancellable execution context passed through every phase of a run."""

import threading
from typing import Optional

from ..__util__ import OperationCancelledError


class Context:
    """Cooperative cancellation signal.

    Collaborators call check() at points where they can stop promptly.
    Timeouts are left to the caller, who may cancel() from another thread.
    """

    def __init__(self, parent: Optional["Context"] = None) -> None:
        self._cancelled = threading.Event()
        self._reason = ""
        self._parent = parent

    def cancel(self, reason: str = "context cancelled") -> None:
        self._reason = reason
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def reason(self) -> str:
        if self._cancelled.is_set():
            return self._reason
        if self._parent is not None:
            return self._parent.reason
        return ""

    def check(self) -> None:
        """Raise OperationCancelledError if this context was cancelled."""
        if self.cancelled:
            raise OperationCancelledError(self.reason)

    def child(self) -> "Context":
        """New context cancelled together with this one."""
        return Context(parent=self)
