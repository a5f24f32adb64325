from __future__ import annotations

import logging
from dataclasses import dataclass

from app.interview.feedback import FeedbackSynthesizer
from app.interview.intro import IntroSynthesizer
from app.interview.pipeline import TurnPipeline
from app.interview.questions import QuestionProvider
from app.interview.session import InterviewSession, SessionConfig
from app.services.deepgram_service import DeepgramTranscriber
from app.services.llm_service import ChatCompletionService
from app.services.murf_service import MurfSpeechSynthesizer, is_retryable_speech_error
from app.services.retry import RetryPolicy
from core.config import Settings, get_settings

logger = logging.getLogger("app.interview.engine")


@dataclass
class InterviewEngine:
    """The wired-up components one process shares across all sessions."""

    questions: QuestionProvider
    intro: IntroSynthesizer
    pipeline: TurnPipeline
    feedback: FeedbackSynthesizer

    def new_session(self, config: SessionConfig, user_id: str = "") -> InterviewSession:
        return InterviewSession(engine=self, config=config, user_id=str(user_id or "").strip())


def build_interview_engine(
    settings: Settings | None = None,
    *,
    transcriber: DeepgramTranscriber | None = None,
    llm: ChatCompletionService | None = None,
    synthesizer: MurfSpeechSynthesizer | None = None,
    sleep=None,
) -> InterviewEngine:
    settings = settings or get_settings()
    transcriber = transcriber or DeepgramTranscriber.from_settings(settings)
    llm = llm or ChatCompletionService.from_settings(settings)
    synthesizer = synthesizer or MurfSpeechSynthesizer.from_settings(settings)

    retry_kwargs = {"base_delay_sec": settings.tts_retry_base_delay_sec, "retryable": is_retryable_speech_error}
    if sleep is not None:
        retry_kwargs["sleep"] = sleep
    turn_retry = RetryPolicy(max_attempts=settings.turn_tts_max_attempts, **retry_kwargs)
    intro_retry = RetryPolicy(max_attempts=settings.intro_tts_max_attempts, **retry_kwargs)

    questions = QuestionProvider(llm, timeout_sec=settings.question_timeout_sec)
    engine = InterviewEngine(
        questions=questions,
        intro=IntroSynthesizer(llm, synthesizer, tts_retry=intro_retry, timeout_sec=settings.llm_timeout_sec),
        pipeline=TurnPipeline(
            transcriber,
            llm,
            synthesizer,
            questions,
            tts_retry=turn_retry,
            llm_timeout_sec=settings.llm_timeout_sec,
        ),
        feedback=FeedbackSynthesizer(llm, timeout_sec=settings.feedback_timeout_sec),
    )
    logger.info(
        "interview engine ready | model=%s stt=%s tts_voice=%s turn_tts_attempts=%s intro_tts_attempts=%s",
        llm.model,
        transcriber.model,
        synthesizer.voice.voice_id,
        turn_retry.max_attempts,
        intro_retry.max_attempts,
    )
    return engine
