"""Per-path version numbering for captured snapshots."""

from __future__ import annotations

import threading
from typing import Dict, Optional


class SequenceTracker:
    """
    Hands out strictly increasing sequence numbers per file path.

    The lookup, increment and store happen under one lock, so overlapping
    notifications for the same path never receive the same number.
    """

    def __init__(self) -> None:
        self._last: Dict[str, int] = {}
        self._lock = threading.Lock()

    def next_sequence(self, path: str) -> int:
        """
        Reserve the next sequence number for ``path``.

        Args:
            path: Absolute file path

        Returns:
            0 for a path never seen before, otherwise last value + 1
        """
        with self._lock:
            last = self._last.get(path)
            sequence = 0 if last is None else last + 1
            self._last[path] = sequence
            return sequence

    def current(self, path: str) -> Optional[int]:
        """Last number handed out for ``path``, or None if none was."""
        with self._lock:
            return self._last.get(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last)
