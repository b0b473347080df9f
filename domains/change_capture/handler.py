"""
Watchdog handler that captures file contents as soon as a change is reported.

Reads must be fast and must never raise back into the watchdog dispatcher:
anything slower than the read itself (logging contents, shadow writes) is
left to the persistence worker.
"""

from __future__ import annotations

import os
import stat
import threading
from pathlib import Path

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler

from dirmon.models.schemas import Snapshot
from dirmon.utils.helpers import matches_pattern
from domains.change_capture.sequence import SequenceTracker
from domains.change_capture.snapshot_queue import QueueFullError, SnapshotQueue


def read_shared(path: str) -> str:
    """
    Read a whole file as text without excluding concurrent writers.

    Args:
        path: File to read

    Returns:
        Decoded contents, newlines untouched

    Raises:
        OSError: If the file cannot be opened or read
    """
    with open(path, "r", encoding="utf-8-sig", errors="replace", newline="") as fh:
        return fh.read()


class CaptureEventHandler(FileSystemEventHandler):
    """Turns modification events into queued snapshots."""

    def __init__(
        self,
        queue: SnapshotQueue,
        tracker: SequenceTracker,
        pattern: str = "*.*",
    ) -> None:
        """
        Initialize capture handler.

        Args:
            queue: Destination for captured snapshots
            tracker: Per-path sequence numbering
            pattern: Glob applied to file names
        """
        super().__init__()
        self.queue = queue
        self.tracker = tracker
        self.pattern = pattern

        self._counter_lock = threading.Lock()
        self.captured = 0
        self.failed = 0
        self.dropped = 0

    def should_process(self, path: str) -> bool:
        """Check the file name against the configured pattern."""
        return matches_pattern(Path(os.fsdecode(path)), self.pattern)

    def on_created(self, event: FileSystemEvent) -> None:
        if not self.should_process(event.src_path):
            return
        logger.info(f"File: {event.src_path} created")

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not self.should_process(event.src_path):
            return
        logger.info(f"File: {event.src_path} deleted")

    def on_moved(self, event: FileSystemEvent) -> None:
        if not (self.should_process(event.src_path) or self.should_process(event.dest_path)):
            return
        logger.info(f"File: {event.src_path} renamed to {event.dest_path}")

    def on_modified(self, event: FileSystemEvent) -> None:
        # Directory modifications only mean an entry was added or removed
        if event.is_directory:
            return
        if not self.should_process(event.src_path):
            return

        self.capture(os.fsdecode(event.src_path))

    def capture(self, path: str) -> Snapshot | None:
        """
        Snapshot ``path`` and hand it to the queue.

        Returns:
            The queued snapshot, or None if the capture was abandoned
        """
        try:
            # Pipes and devices would block the dispatcher on read
            if not stat.S_ISREG(os.stat(path).st_mode):
                self._count("failed")
                logger.error(f"Capture skipped for {path}: not a regular file")
                return None
            contents = read_shared(path)
        except OSError as e:
            self._count("failed")
            logger.error(f"Capture failed for {path}: {e}")
            return None

        snapshot = Snapshot(
            sequence=self.tracker.next_sequence(path),
            file_name=os.path.basename(path),
            contents=contents,
        )

        try:
            self.queue.enqueue(snapshot)
        except QueueFullError as e:
            self._count("dropped")
            logger.error(f"Dropping snapshot {snapshot.shadow_name}: {e}")
            return None

        self._count("captured")
        return snapshot

    def _count(self, name: str) -> None:
        with self._counter_lock:
            setattr(self, name, getattr(self, name) + 1)
