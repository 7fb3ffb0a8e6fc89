"""HTTP transport sessions with an idle timeout.

Expiry is lazy: a session is checked (and discarded if idle too long) when a
request names it, and stale sessions are swept whenever a new one is created.
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from kubemcp.observability.logging import get_logger
from kubemcp.observability.metrics import http_sessions_active

_log = get_logger("api.sessions")

DEFAULT_SESSION_TIMEOUT_SECONDS = 300


@dataclass
class Session:
    session_id: str
    created_at: float
    last_seen: float
    protocol_version: str = ""
    client_name: str = ""


class SessionManager:
    """Tracks live sessions.

    Args:
        timeout_seconds: Idle time after which a session is discarded.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_SESSION_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout = timeout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    def create(self, protocol_version: str = "", client_name: str = "") -> Session:
        self.sweep()
        now = self._clock()
        session = Session(
            session_id=uuid.uuid4().hex,
            created_at=now,
            last_seen=now,
            protocol_version=protocol_version,
            client_name=client_name,
        )
        with self._lock:
            self._sessions[session.session_id] = session
            http_sessions_active.set(len(self._sessions))
        _log.info("session_created", session_id=session.session_id, client=client_name)
        return session

    def touch(self, session_id: str) -> Session | None:
        """Return the live session and refresh its idle clock, else None."""
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if now - session.last_seen > self._timeout:
                del self._sessions[session_id]
                http_sessions_active.set(len(self._sessions))
                _log.info("session_expired", session_id=session_id)
                return None
            session.last_seen = now
            return session

    def end(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
            http_sessions_active.set(len(self._sessions))
        if removed:
            _log.info("session_ended", session_id=session_id)
        return removed

    def sweep(self) -> int:
        """Discard every idle session; returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if now - s.last_seen > self._timeout]
            for sid in stale:
                del self._sessions[sid]
            http_sessions_active.set(len(self._sessions))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
