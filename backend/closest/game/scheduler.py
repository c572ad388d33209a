from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from flask_socketio import SocketIO

logger = logging.getLogger(__name__)


class CleanupTask:
    """One-shot deferred callback.

    ``cancel()`` may be called any number of times, before or after the task
    fired. ``fire()`` runs the callback at most once and never after a cancel.
    """

    def __init__(self, callback: Callable[[], None], delay_sec: float):
        self._callback = callback
        self.delay_sec = delay_sec
        self._lock = Lock()
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        with self._lock:
            self.cancelled = True

    def fire(self) -> None:
        with self._lock:
            if not self.pending:
                return
            self.fired = True
        self._callback()


class SocketIOScheduler:
    """Runs cleanup tasks as Socket.IO background tasks."""

    def __init__(self, socketio: SocketIO):
        self._socketio = socketio

    def call_later(self, delay_sec: float, callback: Callable[[], None]) -> CleanupTask:
        task = CleanupTask(callback, delay_sec)

        def _runner() -> None:
            self._socketio.sleep(delay_sec)
            try:
                task.fire()
            except Exception:
                logger.exception("Deferred task failed")

        self._socketio.start_background_task(_runner)
        return task
