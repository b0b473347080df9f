"""Hand-off buffer between watchdog callbacks and the persistence worker."""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Optional

from dirmon.models.schemas import Snapshot
from dirmon.utils.config import DirmonError
from domains.change_capture.cancellation import CancellationToken


class QueueFullError(DirmonError):
    """Raised when a bounded queue cannot accept another snapshot."""


class SnapshotQueue:
    """
    FIFO of pending snapshots with a counting readiness signal.

    Many producers may enqueue concurrently; exactly one consumer waits.
    """

    def __init__(self, max_pending: int = 0) -> None:
        self.max_pending = max_pending
        self._items: Deque[Snapshot] = deque()
        self._ready = 0
        self._cond = threading.Condition()

    def enqueue(self, snapshot: Snapshot) -> None:
        """
        Append ``snapshot`` and signal readiness once.

        Raises:
            QueueFullError: If a bound is configured and already reached
        """
        with self._cond:
            if self.max_pending and len(self._items) >= self.max_pending:
                raise QueueFullError(f"{len(self._items)} snapshots already pending")
            self._items.append(snapshot)
            self._ready += 1
            self._cond.notify()

    def wait_and_dequeue(self, token: CancellationToken) -> Optional[Snapshot]:
        """
        Block until a snapshot is available or ``token`` is cancelled.

        Returns:
            The oldest pending snapshot, or None on cancellation
        """
        with token.register(self._wake):
            with self._cond:
                while True:
                    if token.cancelled:
                        return None
                    if self._ready > 0:
                        return self._take()
                    self._cond.wait()

    def try_dequeue(self) -> Optional[Snapshot]:
        """Pop the oldest pending snapshot without blocking."""
        with self._cond:
            if self._ready == 0:
                return None
            return self._take()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def _take(self) -> Snapshot:
        self._ready -= 1
        return self._items.popleft()

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()
