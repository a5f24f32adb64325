import pytest

from app.interview.intro import fallback_intro_text
from app.interview.models import Question
from app.services.murf_service import SpeechBackendError

QUESTION = Question(title="Two Sum", description="Find two numbers that add up to target.")


@pytest.mark.asyncio
async def test_intro_uses_generated_text(make_engine, fakes):
    llm = fakes["llm"](intro="Hello! Today we'll tackle Two Sum. How would you start?")
    synthesizer = fakes["synthesizer"]()
    engine = make_engine(llm=llm, synthesizer=synthesizer)

    intro = await engine.intro.synthesize_intro(QUESTION, "dsa")

    assert intro.intro_text == "Hello! Today we'll tackle Two Sum. How would you start?"
    assert intro.audio_base64
    call = llm.calls_of("intro")[0]
    assert call["temperature"] == 0.7
    assert call["max_tokens"] == 150
    assert call["messages"][1]["content"].startswith("Generate an intro for this question:\nTitle: Two Sum")
    assert synthesizer.calls == [intro.intro_text]


@pytest.mark.asyncio
@pytest.mark.parametrize("generated", ["", "Hi!", RuntimeError("timeout")])
async def test_intro_falls_back_to_template(make_engine, fakes, generated):
    engine = make_engine(llm=fakes["llm"](intro=generated))

    intro = await engine.intro.synthesize_intro(QUESTION, "dsa")

    assert intro.intro_text == fallback_intro_text("Two Sum", "dsa")
    assert '"Two Sum"' in intro.intro_text


def test_fallback_phrasing_differs_for_topic_interviews():
    assert fallback_intro_text("Caching", "backend").startswith('Hi! Let\'s discuss "Caching".')
    assert fallback_intro_text("Two Sum", "dsa").startswith('Hi! Today\'s problem is "Two Sum".')


@pytest.mark.asyncio
async def test_intro_retries_speech_once_then_returns_text_only(make_engine, fakes, sleeps):
    synthesizer = fakes["synthesizer"](failures=99)
    engine = make_engine(synthesizer=synthesizer)

    intro = await engine.intro.synthesize_intro(QUESTION, "frontend")

    assert intro.intro_text
    assert intro.audio_base64 is None
    assert len(synthesizer.calls) == 2
    assert sleeps == [0.5]


@pytest.mark.asyncio
async def test_intro_short_audio_counts_as_failure(make_engine, fakes):
    synthesizer = fakes["synthesizer"](failures=1, error=SpeechBackendError("audio too small (12 bytes)", retryable=True))
    engine = make_engine(synthesizer=synthesizer)

    intro = await engine.intro.synthesize_intro(QUESTION, "dsa")

    assert intro.audio_base64
    assert len(synthesizer.calls) == 2
