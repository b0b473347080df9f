"""One-shot cancellation shared by every blocking wait in the monitor."""

from __future__ import annotations

import threading
from typing import Callable, Optional


class CancellationRegistration:
    """Handle returned by ``CancellationToken.register``; usable as a context manager."""

    def __init__(self, token: "CancellationToken", callback: Callable[[], None]) -> None:
        self._token = token
        self._callback = callback

    def unregister(self) -> None:
        self._token._unregister(self._callback)

    def __enter__(self) -> "CancellationRegistration":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unregister()


class CancellationToken:
    """Cooperative stop signal that can be raised once and never reset."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Raise the signal and run registered callbacks. Later calls are no-ops."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            callback()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled; returns False if ``timeout`` expired first."""
        return self._event.wait(timeout)

    def register(self, callback: Callable[[], None]) -> CancellationRegistration:
        """
        Run ``callback`` when the token is cancelled.

        If the token is already cancelled the callback runs immediately.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return CancellationRegistration(self, callback)

        callback()
        return CancellationRegistration(self, callback)

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass
