import json
import logging
import secrets
import time
from pathlib import Path
from threading import Lock
from typing import Any

logger = logging.getLogger("app.db.interview_repo")


def new_feedback_uid(now_ms: int | None = None) -> str:
    ms = int(now_ms if now_ms is not None else time.time() * 1000)
    return f"fb_{ms}_{secrets.token_hex(4)[:7]}"


class InterviewRecordStore:
    """Session snapshots and feedback reports, kept in memory and optionally mirrored to a JSON file."""

    def __init__(self, path: str | Path | None = None):
        self._lock = Lock()
        self._path = Path(path) if path else None
        self._sessions: dict[str, dict[str, Any]] = {}
        self._feedback: dict[str, dict[str, Any]] = {}
        self._load()

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("record store unreadable, starting empty | path=%s err=%s", self._path, exc)
            return
        if not isinstance(payload, dict):
            return
        self._sessions = {
            str(key): value
            for key, value in (payload.get("sessions") or {}).items()
            if isinstance(value, dict)
        }
        self._feedback = {
            str(key): value
            for key, value in (payload.get("feedback") or {}).items()
            if isinstance(value, dict)
        }

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        temp_path.write_text(
            json.dumps({"sessions": self._sessions, "feedback": self._feedback}, ensure_ascii=False),
            encoding="utf-8",
        )
        temp_path.replace(self._path)

    def save_session_record(self, snapshot: dict[str, Any]) -> None:
        sid = str((snapshot or {}).get("id") or "").strip()
        if not sid:
            return
        with self._lock:
            self._sessions[sid] = dict(snapshot)
            self._persist()

    def get_session_record(self, session_id: str) -> dict[str, Any] | None:
        sid = str(session_id or "").strip()
        with self._lock:
            data = self._sessions.get(sid)
            return dict(data) if isinstance(data, dict) else None

    def save_feedback_report(
        self,
        feedback: dict[str, Any],
        session_id: str | None = None,
        questions: list[str] | None = None,
    ) -> dict[str, Any]:
        now_ms = int(time.time() * 1000)
        record = {
            "uid": new_feedback_uid(now_ms),
            "feedback": dict(feedback or {}),
            "timestamp": now_ms,
            "session_id": str(session_id or "").strip() or None,
            "questions": list(questions or []),
        }
        with self._lock:
            self._feedback[record["uid"]] = record
            self._persist()
        return dict(record)

    def get_feedback_record(self, uid: str) -> dict[str, Any] | None:
        key = str(uid or "").strip()
        with self._lock:
            data = self._feedback.get(key)
            return dict(data) if isinstance(data, dict) else None
