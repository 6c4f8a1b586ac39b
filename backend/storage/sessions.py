"""Per-session state: a parameter store plus in-progress algorithm navigators.

Sessions live in process memory only and expire after SESSION_TTL_SECONDS
without activity.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

from storage.parameter_store import ParameterStore

if TYPE_CHECKING:
    from algorithms.navigator import AlgorithmNavigator

logger = logging.getLogger(__name__)

SESSION_TTL_SECONDS = int(os.getenv("SESSION_TTL_SECONDS", "86400"))
DEFAULT_SESSION_KEY = "local"


class SessionState:
    def __init__(self, key: str, now: float) -> None:
        self.key = key
        self.parameters = ParameterStore()
        # In-progress navigators keyed by algorithm id
        self.navigators: dict[str, "AlgorithmNavigator"] = {}
        self.last_seen = now


class SessionStore:
    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._sessions: dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def get(self, key: Optional[str] = None) -> SessionState:
        """Return the session for key, creating it if needed."""
        key = key or DEFAULT_SESSION_KEY
        with self._lock:
            self._expire()
            session = self._sessions.get(key)
            if session is None:
                session = SessionState(key, self._clock())
                self._sessions[key] = session
                logger.debug(f"Created session {key}")
            session.last_seen = self._clock()
            return session

    def drop(self, key: str) -> None:
        with self._lock:
            self._sessions.pop(key, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def _expire(self) -> None:
        now = self._clock()
        stale = [k for k, s in self._sessions.items() if now - s.last_seen > self._ttl]
        for key in stale:
            del self._sessions[key]
        if stale:
            logger.info(f"Expired {len(stale)} idle session(s)")


_store_instance: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Return the module-level SessionStore singleton."""
    global _store_instance
    if _store_instance is None:
        _store_instance = SessionStore()
    return _store_instance
