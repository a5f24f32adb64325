from __future__ import annotations

from enum import Enum


class PipelineStage(str, Enum):
    TRANSCRIPTION = "transcription"
    GENERATION = "generation"
    SYNTHESIS = "synthesis"


class InterviewInputError(ValueError):
    """Caller supplied something unusable; no backend call was made."""

    category = "invalid_input"


class PipelineError(Exception):
    category = "pipeline_failed"
    detail = "The interview turn could not be processed. Please try again."

    def __init__(self, stage: PipelineStage, message: str = ""):
        self.stage = PipelineStage(stage)
        self.message = str(message or "")
        super().__init__(f"{self.stage.value}: {self.message}" if self.message else self.stage.value)


class TranscriptionError(PipelineError):
    category = "transcription_failed"
    detail = "We could not transcribe your answer. Please try again."

    def __init__(self, message: str = ""):
        super().__init__(PipelineStage.TRANSCRIPTION, message)


class NoSpeechDetectedError(TranscriptionError):
    category = "no_speech_detected"
    detail = "No speech detected"


class GenerationError(PipelineError):
    category = "generation_failed"
    detail = "The interviewer could not respond. Please try again."

    def __init__(self, message: str = ""):
        super().__init__(PipelineStage.GENERATION, message)


class SynthesisError(PipelineError):
    category = "synthesis_failed"
    detail = "Voice playback is unavailable for this reply."

    def __init__(self, message: str = ""):
        super().__init__(PipelineStage.SYNTHESIS, message)


class SessionStateError(RuntimeError):
    category = "invalid_session_state"


class TurnInProgressError(SessionStateError):
    category = "turn_in_progress"
