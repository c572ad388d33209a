from __future__ import annotations

from dataclasses import dataclass
from threading import Lock


@dataclass
class Session:
    sid: str
    code: str


class SessionStore:
    """Which room each connection has joined, keyed by Socket.IO sid."""

    def __init__(self):
        self._lock = Lock()
        self._sessions: dict[str, Session] = {}

    def bind(self, sid: str, code: str) -> Session:
        with self._lock:
            session = Session(sid=sid, code=code)
            self._sessions[sid] = session
            return session

    def get(self, sid: str) -> Session | None:
        with self._lock:
            return self._sessions.get(sid)

    def pop(self, sid: str) -> Session | None:
        with self._lock:
            return self._sessions.pop(sid, None)
