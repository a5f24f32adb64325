from __future__ import annotations

import logging

from app.interview.models import IntroResult, Question
from app.interview.pipeline import encode_audio
from app.prompts import CODING_TYPE, build_intro_messages, normalize_interview_type
from app.services.llm_service import ChatCompletionService
from app.services.murf_service import MurfSpeechSynthesizer
from app.services.retry import NO_RETRY, RetryPolicy
from app.system_metrics import increment_metric
from core.logger import log_event

logger = logging.getLogger("app.interview.intro")

INTRO_TEMPERATURE = 0.7
INTRO_MAX_TOKENS = 150
MIN_INTRO_CHARS = 10


def fallback_intro_text(title: str, interview_type: str) -> str:
    if normalize_interview_type(interview_type) == CODING_TYPE:
        return f'Hi! Today\'s problem is "{title}". Take a moment to read it, and when you\'re ready, walk me through your approach.'
    return f'Hi! Let\'s discuss "{title}". I\'d love to hear your thoughts and experience on this topic.'


class IntroSynthesizer:
    def __init__(
        self,
        llm: ChatCompletionService,
        synthesizer: MurfSpeechSynthesizer,
        tts_retry: RetryPolicy = NO_RETRY,
        timeout_sec: float | None = None,
    ):
        self.llm = llm
        self.synthesizer = synthesizer
        self.tts_retry = tts_retry
        self.timeout_sec = timeout_sec

    async def _intro_text(self, question: Question, interview_type: str, session_id: str) -> str:
        try:
            text = await self.llm.complete(
                build_intro_messages(question.title, question.description, interview_type),
                temperature=INTRO_TEMPERATURE,
                max_tokens=INTRO_MAX_TOKENS,
                timeout_sec=self.timeout_sec,
            )
        except Exception as exc:
            logger.warning("intro generation failed | title=%s err=%s", question.title, exc)
            text = ""

        text = str(text or "").strip()
        if len(text) < MIN_INTRO_CHARS:
            increment_metric("intro_fallbacks_total")
            log_event("intro_synthesizer", "fallback_text", session_id, title=question.title, generated_length=len(text))
            return fallback_intro_text(question.title, interview_type)
        return text

    async def synthesize_intro(self, question: Question, interview_type: str = "dsa", session_id: str = "") -> IntroResult:
        text = await self._intro_text(question, interview_type, session_id)

        audio_base64 = None
        try:
            audio = await self.tts_retry.run(lambda: self.synthesizer.synthesize(text), label="intro_tts")
            audio_base64 = encode_audio(audio) or None
        except Exception as exc:
            increment_metric("intro_audio_missing_total")
            log_event("intro_synthesizer", "audio_unavailable", session_id, error=str(exc) or exc.__class__.__name__)

        return IntroResult(intro_text=text, audio_base64=audio_base64)
