# backend/core/state.py

from enum import Enum


class InterviewState(str, Enum):
    """What the audio side of a session is doing right now."""

    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class SessionLifecycle(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionLifecycle.COMPLETED, SessionLifecycle.ABANDONED)
