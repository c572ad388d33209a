from __future__ import annotations

import logging
import random
from threading import RLock
from typing import Callable, Protocol

from .errors import RoomNotFound
from .models import CODE_ALPHABET, CODE_LENGTH, Room
from .scheduler import CleanupTask

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    def call_later(self, delay_sec: float, callback: Callable[[], None]) -> CleanupTask: ...


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


def generate_code(rng: random.Random | None = None) -> str:
    rng = rng or random
    return "".join(rng.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


class RoomRegistry:
    """All live rooms of one server process, keyed by code.

    Created once by the application factory and handed to whoever needs it.
    """

    def __init__(self, scheduler: Scheduler, ttl_sec: float = 120, rng: random.Random | None = None):
        self._scheduler = scheduler
        self.ttl_sec = ttl_sec
        self._rng = rng or random.Random()
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._rooms

    def create_room(self) -> Room:
        with self._lock:
            code = generate_code(self._rng)
            while code in self._rooms:
                code = generate_code(self._rng)

            room = Room(code=code)
            self._rooms[code] = room

        logger.info("Room %s created", code)
        return room

    def get_room(self, code) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def require_room(self, code) -> Room:
        room = self.get_room(code)
        if room is None:
            raise RoomNotFound()
        return room

    def delete_room(self, code) -> bool:
        with self._lock:
            room = self._rooms.pop(normalize_code(code), None)
        if room is None:
            return False

        with room.lock:
            room.closed = True
            if room.cleanup_task is not None:
                room.cleanup_task.cancel()
                room.cleanup_task = None
        logger.info("Room %s deleted", room.code)
        return True

    def schedule_cleanup(self, code) -> CleanupTask | None:
        room = self.get_room(code)
        if room is None:
            return None

        with room.lock:
            if room.cleanup_task is not None:
                room.cleanup_task.cancel()

            task: CleanupTask | None = None

            def _expire() -> None:
                self._expire(room.code, task)

            task = self._scheduler.call_later(self.ttl_sec, _expire)
            room.cleanup_task = task

        logger.info("Room %s is empty, deleting in %ss unless someone rejoins", room.code, self.ttl_sec)
        return task

    def _expire(self, code: str, task: CleanupTask | None) -> None:
        room = self.get_room(code)
        if room is None:
            return

        with room.lock:
            if room.cleanup_task is not task or room.players:
                return
            room.cleanup_task = None
            self.delete_room(code)
