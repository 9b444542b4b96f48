"""
In-memory session registry.

Maps opaque session ids (the "sid" cookie) to user ids. Nothing is
persisted and nothing expires: entries live until logout or process exit,
so a restart silently logs every user out.
"""

import secrets
import threading
from typing import Any, Optional


class SessionStore:
    """Process-wide sid -> user id map, safe to share across request threads."""

    def __init__(self):
        self._sessions: dict[str, Any] = {}
        self._lock = threading.Lock()

    def create(self, user_id: Any) -> str:
        session_id = secrets.token_urlsafe(32)
        with self._lock:
            self._sessions[session_id] = user_id
        return session_id

    def resolve(self, session_id: Optional[str]) -> Optional[Any]:
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def destroy(self, session_id: Optional[str]) -> None:
        """Forget a session. Unknown ids are ignored."""
        if not session_id:
            return
        with self._lock:
            self._sessions.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions
