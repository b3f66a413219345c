"""Cooperative cancellation for pipeline stages and collaborator calls."""

from __future__ import annotations

import threading


class OperationCancelledError(RuntimeError):
    """Raised when a run observes a cancellation request."""


class CancellationToken:
    """Thread-safe cancellation flag backed by ``threading.Event``.

    Long-running collaborators should call ``raise_if_cancelled()`` between
    units of work, or ``wait(timeout)`` while polling an external process.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to *timeout* seconds; return True if cancelled."""
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation cancelled")


# A token that is never cancelled, for callers that do not need one.
NEVER_CANCELLED = CancellationToken()
