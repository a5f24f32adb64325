from __future__ import annotations

import base64
import logging
import time
from typing import Sequence

from pydantic import ValidationError

from app.interview.errors import (
    GenerationError,
    InterviewInputError,
    NoSpeechDetectedError,
    SynthesisError,
    TranscriptionError,
)
from app.interview.models import Message, Question, TurnResult
from app.interview.questions import QuestionProvider
from app.interview.transitions import DEFAULT_TRANSITION_POLICY, TransitionPolicy
from app.services.deepgram_service import DeepgramTranscriber
from app.services.llm_service import ChatCompletionService
from app.services.murf_service import MurfSpeechSynthesizer
from app.services.retry import NO_RETRY, RetryPolicy
from app.system_metrics import increment_metric, observe_turn_latency_ms
from core.logger import log_event

logger = logging.getLogger("app.interview.pipeline")

TURN_TEMPERATURE = 0.6
TURN_MAX_TOKENS = 200
EMPTY_REPLY_TEXT = "I didn't catch that."


def coerce_history(history: Sequence[Message | dict]) -> list[Message]:
    messages: list[Message] = []
    for item in history or []:
        try:
            messages.append(item if isinstance(item, Message) else Message.model_validate(item))
        except ValidationError as exc:
            raise InterviewInputError(f"Malformed history entry at index {len(messages)}") from exc
    return messages


def build_user_message(transcript: str, code: str = "") -> Message:
    content = transcript
    if str(code or "").strip():
        content += f"\n[Current Code State]:\n```\n{code}\n```"
    return Message(role="user", content=content)


def encode_audio(audio: bytes) -> str:
    return base64.b64encode(audio).decode("ascii") if audio else ""


class TurnPipeline:
    """transcribe -> converse -> decide transition -> synthesize, for one candidate utterance.

    Holds no per-session state; everything the turn needs comes in as arguments.
    """

    def __init__(
        self,
        transcriber: DeepgramTranscriber,
        llm: ChatCompletionService,
        synthesizer: MurfSpeechSynthesizer,
        questions: QuestionProvider,
        transition_policy: TransitionPolicy = DEFAULT_TRANSITION_POLICY,
        tts_retry: RetryPolicy = NO_RETRY,
        llm_timeout_sec: float | None = None,
    ):
        self.transcriber = transcriber
        self.llm = llm
        self.synthesizer = synthesizer
        self.questions = questions
        self.transition_policy = transition_policy
        self.tts_retry = tts_retry
        self.llm_timeout_sec = llm_timeout_sec

    async def transcribe(self, audio: bytes, session_id: str = "") -> str:
        result = await self.transcriber.transcribe(audio)
        if result.error:
            increment_metric("turns_transcription_failed_total")
            log_event("turn_pipeline", "transcription_failed", session_id, error=result.error)
            raise TranscriptionError(result.error)
        transcript = str(result.transcript or "").strip()
        if not transcript:
            increment_metric("turns_no_speech_total")
            log_event("turn_pipeline", "no_speech", session_id, audio_bytes=len(audio))
            raise NoSpeechDetectedError("empty transcript")
        return transcript

    async def converse(self, history: list[Message], user_message: Message, session_id: str = "") -> str:
        messages = [m.model_dump() for m in history] + [user_message.model_dump()]
        try:
            reply = await self.llm.complete(
                messages,
                temperature=TURN_TEMPERATURE,
                max_tokens=TURN_MAX_TOKENS,
                timeout_sec=self.llm_timeout_sec,
            )
        except Exception as exc:
            increment_metric("turns_generation_failed_total")
            log_event("turn_pipeline", "generation_failed", session_id, error=str(exc) or exc.__class__.__name__)
            raise GenerationError(str(exc) or exc.__class__.__name__) from exc
        return reply or EMPTY_REPLY_TEXT

    async def _synthesize_audio(self, text: str) -> bytes:
        try:
            return await self.tts_retry.run(lambda: self.synthesizer.synthesize(text), label="turn_tts")
        except Exception as exc:
            raise SynthesisError(str(exc) or exc.__class__.__name__) from exc

    async def synthesize(self, text: str, session_id: str = "") -> str:
        try:
            audio = await self._synthesize_audio(text)
        except SynthesisError as exc:
            increment_metric("turns_audio_degraded_total")
            log_event("turn_pipeline", "synthesis_degraded", session_id, stage=exc.stage.value, error=exc.message)
            return ""
        return encode_audio(audio)

    async def process_turn(
        self,
        audio: bytes,
        history: Sequence[Message | dict],
        code: str = "",
        current_question_title: str = "",
        previous_titles: Sequence[str] = (),
        interview_type: str = "dsa",
        *,
        difficulty: str = "Medium",
        topics: Sequence[str] = (),
        session_id: str = "",
    ) -> TurnResult:
        if not audio:
            raise InterviewInputError("Missing audio")
        messages = coerce_history(history)
        if not messages:
            raise InterviewInputError("Missing history")

        started = time.perf_counter()
        increment_metric("turns_started_total")

        transcript = await self.transcribe(audio, session_id)
        reply = await self.converse(messages, build_user_message(transcript, code), session_id)

        new_question: Question | None = None
        if self.transition_policy.should_advance(transcript, reply):
            exclude = list(previous_titles or [])
            current = str(current_question_title or "").strip()
            if current:
                exclude.append(current)
            new_question = await self.questions.get_question(
                interview_type,
                difficulty,
                topics,
                exclude,
                session_id=session_id,
            )
            increment_metric("question_transitions_total")

        audio_base64 = await self.synthesize(reply, session_id)

        latency_ms = (time.perf_counter() - started) * 1000.0
        observe_turn_latency_ms(latency_ms)
        increment_metric("turns_completed_total")
        log_event(
            "turn_pipeline",
            "turn_completed",
            session_id,
            transcript=transcript,
            reply=reply,
            transitioned=new_question is not None,
            has_audio=bool(audio_base64),
            latency_ms=round(latency_ms, 1),
        )
        return TurnResult(
            transcript=transcript,
            reply=reply,
            audio_base64=audio_base64,
            new_question=new_question,
        )
