from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from app.interview.errors import InterviewInputError, SessionStateError, TurnInProgressError
from app.interview.models import DIFFICULTIES, FeedbackReport, IntroResult, Message, Question, TurnResult
from app.prompts import INTERVIEW_TYPES, interviewer_system_prompt, starter_code
from app.system_metrics import increment_metric
from core.logger import log_event
from core.state import InterviewState, SessionLifecycle

if TYPE_CHECKING:
    from app.interview.engine import InterviewEngine

logger = logging.getLogger("app.interview.session")


@dataclass(frozen=True)
class SessionConfig:
    interview_type: str = "dsa"
    difficulty: str = "Medium"
    topics: tuple[str, ...] = ()
    num_questions: int = 3

    @classmethod
    def build(cls, interview_type="dsa", difficulty="Medium", topics=(), num_questions=3) -> "SessionConfig":
        kind = str(interview_type or "").strip().lower()
        if kind not in INTERVIEW_TYPES:
            raise InterviewInputError(f"Unsupported interview type: {interview_type!r}")
        level = next((d for d in DIFFICULTIES if d.lower() == str(difficulty or "").strip().lower()), None)
        if level is None:
            raise InterviewInputError(f"Unsupported difficulty: {difficulty!r}")
        try:
            count = int(num_questions)
        except (TypeError, ValueError):
            raise InterviewInputError("num_questions must be an integer") from None
        if count < 1:
            raise InterviewInputError("num_questions must be at least 1")
        cleaned_topics = tuple(str(t).strip() for t in (topics or ()) if str(t or "").strip())
        return cls(interview_type=kind, difficulty=level, topics=cleaned_topics, num_questions=count)


@dataclass
class InterviewSession:
    """One candidate's interview: lifecycle, history, current question and exclusion list.

    History is append-only. The exclusion list gains the current title only when
    a transition retires it, and ``questions_answered`` moves once per transition.
    """

    engine: "InterviewEngine"
    config: SessionConfig
    user_id: str = ""
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    lifecycle: SessionLifecycle = SessionLifecycle.IDLE
    audio_state: InterviewState = InterviewState.IDLE
    messages: list[Message] = field(default_factory=list)
    current_question: Question | None = None
    previous_titles: list[str] = field(default_factory=list)
    questions_answered: int = 0
    feedback: FeedbackReport | None = None
    created_at: float = field(default_factory=time.time)
    started_at: float | None = None
    completed_at: float | None = None
    _turn_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def history(self) -> tuple[Message, ...]:
        return tuple(self.messages)

    @property
    def remaining_questions(self) -> int:
        return max(0, self.config.num_questions - self.questions_answered)

    @property
    def covered_titles(self) -> list[str]:
        titles = [self.current_question.title] if self.current_question else []
        return titles + list(self.previous_titles)

    def _require(self, *allowed: SessionLifecycle) -> None:
        if self.lifecycle not in allowed:
            expected = "/".join(state.value for state in allowed)
            raise SessionStateError(f"session {self.session_id} is {self.lifecycle.value}, expected {expected}")

    def _set_question(self, question: Question) -> None:
        self.current_question = question
        self.messages.append(
            Message(
                role="system",
                content=interviewer_system_prompt(question.title, question.description, self.config.interview_type),
            )
        )

    async def start(self) -> IntroResult:
        self._require(SessionLifecycle.IDLE)
        self.lifecycle = SessionLifecycle.ACTIVE
        self.started_at = time.time()
        self.audio_state = InterviewState.PROCESSING
        increment_metric("sessions_created_total")
        try:
            question = await self.engine.questions.get_question(
                self.config.interview_type,
                self.config.difficulty,
                self.config.topics,
                [],
                session_id=self.session_id,
            )
            self._set_question(question)
            intro = await self.engine.intro.synthesize_intro(
                question,
                self.config.interview_type,
                session_id=self.session_id,
            )
            self.messages.append(Message(role="assistant", content=intro.intro_text))
        finally:
            self.audio_state = InterviewState.IDLE
        log_event(
            "session",
            "started",
            self.session_id,
            interview_type=self.config.interview_type,
            difficulty=self.config.difficulty,
            num_questions=self.config.num_questions,
            title=question.title,
        )
        return intro

    async def process_turn(self, audio: bytes, code: str = "") -> TurnResult:
        self._require(SessionLifecycle.ACTIVE)
        if self._turn_lock.locked():
            raise TurnInProgressError(f"session {self.session_id} already has a turn in flight")

        async with self._turn_lock:
            self.audio_state = InterviewState.PROCESSING
            try:
                result = await self.engine.pipeline.process_turn(
                    audio,
                    self.messages,
                    code,
                    self.current_question.title if self.current_question else "",
                    self.previous_titles,
                    self.config.interview_type,
                    difficulty=self.config.difficulty,
                    topics=self.config.topics,
                    session_id=self.session_id,
                )
            finally:
                self.audio_state = InterviewState.IDLE

            # the session may have been ended or abandoned while the turn was in flight
            if self.lifecycle is not SessionLifecycle.ACTIVE:
                raise SessionStateError(f"session {self.session_id} became {self.lifecycle.value} during the turn")

            self.messages.append(Message(role="user", content=result.transcript))
            self.messages.append(Message(role="assistant", content=result.reply))
            if result.transitioned:
                if self.current_question is not None:
                    self.previous_titles.append(self.current_question.title)
                self.questions_answered += 1
                self._set_question(result.new_question)
                log_event(
                    "session",
                    "question_transition",
                    self.session_id,
                    title=result.new_question.title,
                    questions_answered=self.questions_answered,
                )
            return result

    async def end(self) -> FeedbackReport:
        self._require(SessionLifecycle.ACTIVE)
        if self._turn_lock.locked():
            raise TurnInProgressError(f"session {self.session_id} cannot end while a turn is in flight")

        # a second end() or a new turn is rejected until feedback is done
        async with self._turn_lock:
            self.audio_state = InterviewState.PROCESSING
            try:
                report = await self.engine.feedback.synthesize_feedback(
                    self.messages,
                    self.covered_titles,
                    session_id=self.session_id,
                )
            finally:
                self.audio_state = InterviewState.IDLE
            if self.lifecycle is not SessionLifecycle.ACTIVE:
                raise SessionStateError(f"session {self.session_id} became {self.lifecycle.value} while ending")
            self.feedback = report
            self.lifecycle = SessionLifecycle.COMPLETED
            self.completed_at = time.time()
        increment_metric("sessions_completed_total")
        log_event("session", "completed", self.session_id, overall_score=report.overall_score)
        return report

    def abandon(self) -> None:
        self._require(SessionLifecycle.ACTIVE)
        self.lifecycle = SessionLifecycle.ABANDONED
        self.completed_at = time.time()
        increment_metric("sessions_abandoned_total")
        log_event("session", "abandoned", self.session_id, questions_answered=self.questions_answered)

    def snapshot(self) -> dict[str, Any]:
        duration = None
        if self.started_at is not None and self.completed_at is not None:
            duration = int(round(self.completed_at - self.started_at))
        question = self.current_question
        return {
            "id": self.session_id,
            "user_id": self.user_id,
            "interview_type": self.config.interview_type,
            "difficulty": self.config.difficulty,
            "topics": list(self.config.topics),
            "num_questions": self.config.num_questions,
            "status": self.lifecycle.value,
            "audio_state": self.audio_state.value,
            "current_question_index": self.questions_answered,
            "remaining_questions": self.remaining_questions,
            "current_question": question.model_dump() if question else None,
            "starter_code": starter_code(question.title, self.config.interview_type) if question else "",
            "previous_questions": list(self.previous_titles),
            "messages": [m.model_dump() for m in self.messages],
            "created_at": self.created_at,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_seconds": duration,
        }
