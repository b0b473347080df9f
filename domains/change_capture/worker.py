"""
Persistence worker for captured snapshots.

A single background thread drains the snapshot queue, echoes each snapshot to
the log and writes it into the shadow directory. It is the only writer to the
shadow directory.
"""

from __future__ import annotations

import threading
from pathlib import Path

from loguru import logger

from dirmon.models.schemas import Snapshot
from domains.change_capture.cancellation import CancellationToken
from domains.change_capture.snapshot_queue import SnapshotQueue


class PersistenceWorker:
    """Consumes snapshots until its cancellation token is raised."""

    def __init__(
        self,
        queue: SnapshotQueue,
        shadow_dir: Path,
        token: CancellationToken,
        suppress_binary_display: bool = False,
        drain_on_stop: bool = True,
    ) -> None:
        """
        Initialize persistence worker.

        Args:
            queue: Queue to drain
            shadow_dir: Directory receiving one file per snapshot
            token: Stops the worker when cancelled
            suppress_binary_display: Log a notice instead of binary-like contents
            drain_on_stop: Persist already queued snapshots after cancellation
        """
        self.queue = queue
        self.shadow_dir = shadow_dir
        self.token = token
        self.suppress_binary_display = suppress_binary_display
        self.drain_on_stop = drain_on_stop

        self.persisted = 0
        self.failed = 0

        self._thread = threading.Thread(target=self.run, name="dirmon-persist", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def run(self) -> None:
        """Worker loop; returns once the token is cancelled."""
        logger.debug("Persistence worker started")

        while True:
            snapshot = self.queue.wait_and_dequeue(self.token)
            if snapshot is None:
                break
            self.persist(snapshot)

        self._finish()
        logger.debug("Persistence worker stopped")

    def persist(self, snapshot: Snapshot) -> None:
        """Log one snapshot and write it to the shadow directory."""
        if not self.suppress_binary_display or not snapshot.is_binary_like:
            logger.warning(f"Snapshot {snapshot.file_name}: {snapshot.contents}")
        else:
            logger.info(f"Skipping display of binary file: {snapshot.file_name}")

        out_path = self.shadow_dir / snapshot.shadow_name
        try:
            with open(out_path, "w", encoding="utf-8", newline="") as fh:
                fh.write(snapshot.contents)
        except OSError as e:
            self.failed += 1
            logger.error(f"Failed to write snapshot {out_path}: {e}")
            return

        self.persisted += 1

    def _finish(self) -> None:
        if not self.drain_on_stop:
            pending = len(self.queue)
            if pending:
                logger.info(f"Discarding {pending} pending snapshot(s)")
            return

        snapshot = self.queue.try_dequeue()
        while snapshot is not None:
            self.persist(snapshot)
            snapshot = self.queue.try_dequeue()
