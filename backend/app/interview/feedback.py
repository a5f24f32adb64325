from __future__ import annotations

import logging
from typing import Sequence

from app.interview.models import FeedbackReport, Message, SubScore
from app.interview.parsing import Decoded, decode_model
from app.interview.pipeline import coerce_history
from app.prompts import build_feedback_messages
from app.services.llm_service import ChatCompletionService
from app.system_metrics import increment_metric
from core.logger import log_event

logger = logging.getLogger("app.interview.feedback")

FEEDBACK_TEMPERATURE = 0.7
FEEDBACK_MAX_TOKENS = 2000


def build_fallback_report() -> FeedbackReport:
    return FeedbackReport(
        overall_score=6,
        overall_verdict="Lean Hire",
        summary="Interview completed. Detailed analysis could not be generated.",
        strengths=["Completed the interview"],
        areas_for_improvement=["Continue practicing"],
        technical_skills=SubScore(score=6, feedback="Demonstrated technical knowledge."),
        problem_solving=SubScore(score=6, feedback="Showed problem-solving approach."),
        communication=SubScore(score=6, feedback="Communicated throughout the interview."),
        recommendations=["Keep practicing coding problems", "Review data structures and algorithms"],
    )


def render_transcript(history: Sequence[Message]) -> str:
    return "\n\n".join(
        f"{message.role.upper()}: {message.content}"
        for message in history
        if message.role != "system"
    )


class FeedbackSynthesizer:
    def __init__(self, llm: ChatCompletionService, timeout_sec: float | None = None):
        self.llm = llm
        self.timeout_sec = timeout_sec

    async def synthesize_feedback_result(
        self,
        history: Sequence[Message | dict],
        question_titles: Sequence[str] = (),
        session_id: str = "",
    ) -> Decoded[FeedbackReport]:
        messages = coerce_history(history)
        transcript = render_transcript(messages)
        try:
            content = await self.llm.complete(
                build_feedback_messages(transcript, question_titles),
                temperature=FEEDBACK_TEMPERATURE,
                max_tokens=FEEDBACK_MAX_TOKENS,
                timeout_sec=self.timeout_sec,
            )
        except Exception as exc:
            logger.warning("feedback generation failed | err=%s", exc)
            content = ""

        result = decode_model(content, FeedbackReport, build_fallback_report())
        increment_metric("feedback_reports_total")
        if result.fallback:
            increment_metric("feedback_fallbacks_total")
        log_event(
            "feedback_synthesizer",
            "report_ready",
            session_id,
            fallback=result.fallback,
            reason=result.error,
            overall_score=result.value.overall_score,
            verdict=result.value.overall_verdict,
            user_turns=sum(1 for m in messages if m.role == "user"),
        )
        return result

    async def synthesize_feedback(
        self,
        history: Sequence[Message | dict],
        question_titles: Sequence[str] = (),
        session_id: str = "",
    ) -> FeedbackReport:
        result = await self.synthesize_feedback_result(history, question_titles, session_id=session_id)
        return result.value
