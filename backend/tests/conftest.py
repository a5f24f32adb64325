import json
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


QUESTION_JSON = {
    "title": "Group Anagrams",
    "description": "Given an array of strings, group the anagrams together and return the groups in any order.",
    "constraints": ["1 <= strs.length <= 10^4"],
    "examples": [{"input": "strs = [\"eat\",\"tea\",\"ate\"]", "output": "[[\"eat\",\"tea\",\"ate\"]]"}],
    "difficulty": "Medium",
}

FEEDBACK_JSON = {
    "overallScore": 8,
    "overallVerdict": "Hire",
    "summary": "Solid approach with a clear explanation.",
    "strengths": ["Picked a hash map early"],
    "areasForImprovement": ["Discuss edge cases sooner"],
    "technicalSkills": {"score": 8, "feedback": "Good grasp of hashing."},
    "problemSolving": {"score": 7, "feedback": "Reasoned about complexity."},
    "communication": {"score": 8, "feedback": "Explained clearly."},
    "recommendations": ["Practice interval problems"],
}


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LLM_API_KEY", "test-key")
    monkeypatch.setenv("DEEPGRAM_API_KEY", "test-key")
    monkeypatch.setenv("MURF_API_KEY", "test-key")
    monkeypatch.setenv("DATA_DIR", "")
    for name in ("LLM_BASE_URL", "MODEL_NAME", "MURF_API_URL", "TTS_VOICE_ID", "TTS_MIN_AUDIO_BYTES", "STT_MODEL", "TURN_TTS_MAX_ATTEMPTS", "INTRO_TTS_MAX_ATTEMPTS"):
        monkeypatch.delenv(name, raising=False)
    from core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeTranscriber:
    model = "fake-stt"

    def __init__(self, transcripts=None, error=None):
        self.transcripts = list(transcripts or [])
        self.error = error
        self.calls = []

    async def transcribe(self, audio: bytes):
        from app.services.deepgram_service import TranscriptionResult

        self.calls.append(audio)
        if self.error:
            return TranscriptionResult(transcript=None, error=self.error)
        text = self.transcripts.pop(0) if self.transcripts else ""
        return TranscriptionResult(transcript=text or None)


class FakeLLM:
    """Answers by request kind so one instance can serve a whole session."""

    model = "fake-llm"

    def __init__(self, replies=None, question=None, intro="Hi there! Let's look at today's problem together.", feedback=None):
        self.replies = list(replies or [])
        self.question = question if question is not None else json.dumps(QUESTION_JSON)
        self.intro = intro
        self.feedback = feedback if feedback is not None else json.dumps(FEEDBACK_JSON)
        self.calls = []

    @staticmethod
    def kind_of(messages) -> str:
        last = str(messages[-1]["content"])
        if last.startswith("Generate an intro"):
            return "intro"
        if last.startswith("Generate a "):
            return "question"
        if last.startswith("Please analyze this technical interview"):
            return "feedback"
        return "turn"

    def calls_of(self, kind: str) -> list:
        return [call for call in self.calls if call["kind"] == kind]

    async def complete(self, messages, *, temperature=0.7, max_tokens=200, timeout_sec=None):
        kind = self.kind_of(messages)
        self.calls.append({"kind": kind, "messages": list(messages), "temperature": temperature, "max_tokens": max_tokens})
        if kind == "turn":
            value = self.replies.pop(0) if self.replies else "Tell me more."
        else:
            value = getattr(self, kind)
        if callable(value) and not isinstance(value, str):
            value = value(messages)
        if isinstance(value, BaseException):
            raise value
        return value


class FakeSynthesizer:
    def __init__(self, failures: int = 0, error=None, audio: bytes = b"\xff\xfb" * 800):
        from app.services.murf_service import SpeechBackendError, VoiceProfile

        self.voice = VoiceProfile()
        self.failures = failures
        self.error = error or SpeechBackendError("speech backend returned HTTP 503", retryable=True, status_code=503)
        self.audio = audio
        self.calls = []

    async def synthesize(self, text: str) -> bytes:
        self.calls.append(text)
        if len(self.calls) <= self.failures:
            raise self.error
        return self.audio

    def describe(self) -> dict:
        return {"configured": True, "voice_id": self.voice.voice_id}


@pytest.fixture
def fakes():
    return {"transcriber": FakeTranscriber, "llm": FakeLLM, "synthesizer": FakeSynthesizer}


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def no_sleep(sleeps):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def make_engine(no_sleep):
    from app.interview.engine import build_interview_engine
    from core.config import Settings

    def _make(transcriber=None, llm=None, synthesizer=None, **settings_overrides):
        settings = Settings(**settings_overrides)
        return build_interview_engine(
            settings,
            transcriber=transcriber or FakeTranscriber(),
            llm=llm or FakeLLM(),
            synthesizer=synthesizer or FakeSynthesizer(),
            sleep=no_sleep,
        )

    return _make
