"""
Directory monitor lifecycle.

Wires the watchdog observer, capture handler, snapshot queue and persistence
worker together and owns startup and shutdown ordering:

    CREATED -> RUNNING -> STOPPING -> STOPPED

Shutdown always stops the observer before cancelling the worker, and joins
the worker before reporting STOPPED.
"""

from __future__ import annotations

import shutil
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from loguru import logger
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from dirmon.utils.config import DirmonError, Settings
from domains.change_capture.cancellation import CancellationToken
from domains.change_capture.handler import CaptureEventHandler
from domains.change_capture.sequence import SequenceTracker
from domains.change_capture.snapshot_queue import SnapshotQueue
from domains.change_capture.worker import PersistenceWorker

WAIT_INTERVAL = 1.0  # seconds


class MonitorState(str, Enum):
    """Lifecycle states of a DirectoryMonitor."""

    CREATED = "created"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class MonitorStateError(DirmonError):
    """Raised when a lifecycle transition is not allowed."""


@dataclass
class MonitorStats:
    """Counters reported when the monitor stops."""

    captured: int = 0
    capture_failures: int = 0
    dropped: int = 0
    persisted: int = 0
    write_failures: int = 0
    tracked_files: int = 0


class DirectoryMonitor:
    """Captures every change to files in one directory into a shadow directory."""

    def __init__(self, settings: Settings, observer: BaseObserver | None = None):
        """
        Initialize directory monitor.

        Args:
            settings: Monitor configuration
            observer: Event source; a platform watchdog Observer by default
        """
        self.settings = settings
        self.state = MonitorState.CREATED

        self.tracker = SequenceTracker()
        self.queue = SnapshotQueue(max_pending=settings.max_pending)
        self.handler = CaptureEventHandler(self.queue, self.tracker, settings.file_pattern)

        self._worker_token = CancellationToken()
        self.worker = PersistenceWorker(
            self.queue,
            settings.shadow_dir,
            self._worker_token,
            suppress_binary_display=settings.suppress_binary_display,
            drain_on_stop=settings.drain_on_stop,
        )

        self.observer = observer if observer is not None else Observer()
        self.observer.daemon = True

        self._lock = threading.Lock()
        self._stopped = threading.Event()

    @property
    def monitor_dir(self) -> Path:
        return self.settings.monitor_dir

    @property
    def shadow_dir(self) -> Path:
        return self.settings.shadow_dir

    def prepare_shadow_dir(self) -> None:
        """Purge (if configured) and create the shadow directory."""
        shadow = self.settings.shadow_dir

        if self.settings.purge_shadow and shadow.exists():
            shutil.rmtree(shadow)
            logger.debug("Purged shadow directory")

        if not shadow.exists():
            shadow.mkdir(parents=True)
            logger.debug("Created shadow directory")

    def start(self) -> None:
        """Prepare the shadow directory, start the worker and begin watching."""
        with self._lock:
            if self.state is not MonitorState.CREATED:
                raise MonitorStateError(f"Cannot start a monitor that is {self.state.value}")

            logger.debug(
                f"Starting monitor Watch={self.monitor_dir}, Shadow={self.shadow_dir}, "
                f"Purge={self.settings.purge_shadow}, "
                f"SuppressBinary={self.settings.suppress_binary_display}"
            )

            self.prepare_shadow_dir()
            self.worker.start()

            try:
                self.observer.schedule(self.handler, str(self.monitor_dir), recursive=False)
                self.observer.start()
            except Exception:
                self._worker_token.cancel()
                self.worker.join()
                self.state = MonitorState.STOPPED
                self._stopped.set()
                raise

            self.state = MonitorState.RUNNING

        logger.info(f"Started watching: {self.monitor_dir}")

    def stop(self) -> None:
        """Stop accepting events, then stop and join the worker. Idempotent."""
        with self._lock:
            if self.state is MonitorState.CREATED:
                self.state = MonitorState.STOPPED
                self._stopped.set()
                return
            first = self.state is MonitorState.RUNNING
            if first:
                self.state = MonitorState.STOPPING

        if not first:
            # Another caller is shutting down; return once it has finished
            self._stopped.wait()
            return

        logger.info("Stopping directory monitor...")

        try:
            self.observer.stop()
            self.observer.join()
        finally:
            self._worker_token.cancel()
            self.worker.join()

            with self._lock:
                self.state = MonitorState.STOPPED
            self._stopped.set()

        stats = self.stats
        logger.info(
            f"Directory monitor stopped: {stats.captured} captured, {stats.persisted} persisted, "
            f"{stats.capture_failures} capture failures, {stats.write_failures} write failures, "
            f"{stats.dropped} dropped"
        )

    def run(self, token: CancellationToken) -> None:
        """Run until ``token`` is cancelled, then shut down in order."""
        self.start()
        try:
            while not token.wait(WAIT_INTERVAL):
                continue
        finally:
            self.stop()

    @property
    def stats(self) -> MonitorStats:
        return MonitorStats(
            captured=self.handler.captured,
            capture_failures=self.handler.failed,
            dropped=self.handler.dropped,
            persisted=self.worker.persisted,
            write_failures=self.worker.failed,
            tracked_files=len(self.tracker),
        )

    def __enter__(self) -> "DirectoryMonitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
