from __future__ import annotations

import time
from threading import Lock

from app.interview.session import InterviewSession
from core.state import SessionLifecycle


class SessionRegistry:
    def __init__(self):
        self._lock = Lock()
        self._sessions: dict[str, dict] = {}

    def register(self, session: InterviewSession) -> None:
        with self._lock:
            self._sessions[session.session_id] = {
                "session": session,
                "created_at": time.time(),
                "updated_at": time.time(),
                "active": session.lifecycle is not SessionLifecycle.ABANDONED,
            }

    def touch(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._sessions[session_id]["updated_at"] = time.time()

    def mark_inactive(self, session_id: str) -> None:
        with self._lock:
            if session_id in self._sessions:
                self._sessions[session_id]["active"] = False
                self._sessions[session_id]["updated_at"] = time.time()

    def get(self, session_id: str) -> dict | None:
        with self._lock:
            item = self._sessions.get(session_id)
            return dict(item) if item else None

    def get_session(self, session_id: str) -> InterviewSession | None:
        item = self.get(session_id)
        return item["session"] if item else None

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for data in self._sessions.values() if data.get("active"))

    def cleanup_inactive(self, ttl_sec: float, on_abandon=None) -> int:
        """Abandon sessions idle past the TTL, then drop finished ones that have aged out."""
        now_ts = time.time()
        cutoff = now_ts - max(30.0, float(ttl_sec or 900.0))
        removed = 0
        with self._lock:
            for session_id, data in list(self._sessions.items()):
                session: InterviewSession = data["session"]
                updated_at = float((data or {}).get("updated_at") or 0.0)
                if updated_at > cutoff:
                    continue
                if session.lifecycle is SessionLifecycle.ACTIVE:
                    session.abandon()
                    if on_abandon is not None:
                        on_abandon(session)
                    data["active"] = False
                    data["updated_at"] = now_ts
                    continue
                self._sessions.pop(session_id, None)
                removed += 1
        return removed
