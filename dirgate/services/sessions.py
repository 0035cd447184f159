# dirgate/services/sessions.py
from __future__ import annotations

import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

TOKEN_BYTES = 32  # 256 bits of entropy per token


@dataclass(frozen=True)
class Session:
    identity: str
    expires_at: float


class SessionRegistry:
    """
    In-memory token -> (identity, expiry) map.

    Every operation, validation included, may mutate the map (expired
    tokens are evicted on access), so a single mutex guards it. Nothing is
    persisted; a restart invalidates all sessions.
    """

    def __init__(self, ttl_sec: float = 24 * 3600, clock: Callable[[], float] = time.time):
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create_session(self, identity: str) -> str:
        token = secrets.token_urlsafe(TOKEN_BYTES)
        expires_at = self._clock() + self.ttl_sec
        with self._lock:
            self._sessions[token] = Session(identity, expires_at)
        return token

    def validate_session(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if now >= session.expires_at:
                del self._sessions[token]
                return None
            return session.identity

    def delete_session(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [t for t, s in self._sessions.items() if now >= s.expires_at]
            for t in expired:
                del self._sessions[t]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
