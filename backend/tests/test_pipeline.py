import base64

import pytest

from app.interview.errors import (
    GenerationError,
    InterviewInputError,
    NoSpeechDetectedError,
    PipelineStage,
    SynthesisError,
    TranscriptionError,
)
from app.services.murf_service import SpeechBackendError

HISTORY = [
    {"role": "system", "content": "You are an expert technical interviewer."},
    {"role": "assistant", "content": "Hi! Today's problem is Two Sum."},
]


def _pipeline(make_engine, fakes, transcripts=("I would sort first",), replies=("Why sort?",), failures=0, **kw):
    transcriber = kw.pop("transcriber", None) or fakes["transcriber"](transcripts=list(transcripts))
    llm = kw.pop("llm", None) or fakes["llm"](replies=list(replies))
    synthesizer = kw.pop("synthesizer", None) or fakes["synthesizer"](failures=failures)
    engine = make_engine(transcriber=transcriber, llm=llm, synthesizer=synthesizer, **kw)
    return engine.pipeline, transcriber, llm, synthesizer


@pytest.mark.asyncio
async def test_turn_happy_path_without_transition(make_engine, fakes):
    pipeline, _, llm, synthesizer = _pipeline(make_engine, fakes)

    result = await pipeline.process_turn(b"audio", HISTORY, code="def f(): pass", current_question_title="Two Sum")

    assert result.transcript == "I would sort first"
    assert result.reply == "Why sort?"
    assert result.new_question is None
    assert base64.b64decode(result.audio_base64) == synthesizer.audio
    turn_call = llm.calls_of("turn")[0]
    assert turn_call["temperature"] == 0.6
    assert turn_call["max_tokens"] == 200
    assert turn_call["messages"][:2] == HISTORY
    assert turn_call["messages"][-1] == {
        "role": "user",
        "content": "I would sort first\n[Current Code State]:\n```\ndef f(): pass\n```",
    }
    assert synthesizer.calls == ["Why sort?"]


@pytest.mark.asyncio
async def test_blank_code_is_not_rendered(make_engine, fakes):
    pipeline, _, llm, _ = _pipeline(make_engine, fakes)
    await pipeline.process_turn(b"audio", HISTORY, code="   ")
    assert llm.calls_of("turn")[0]["messages"][-1]["content"] == "I would sort first"


@pytest.mark.asyncio
async def test_empty_transcript_is_no_speech_and_skips_generation(make_engine, fakes):
    pipeline, _, llm, synthesizer = _pipeline(make_engine, fakes, transcripts=["   "])

    with pytest.raises(NoSpeechDetectedError) as excinfo:
        await pipeline.process_turn(b"audio", HISTORY)

    assert excinfo.value.stage is PipelineStage.TRANSCRIPTION
    assert excinfo.value.category == "no_speech_detected"
    assert llm.calls == []
    assert synthesizer.calls == []


@pytest.mark.asyncio
async def test_transcription_backend_error_fails_turn(make_engine, fakes):
    transcriber = fakes["transcriber"](error="HTTP 500 from speech backend")
    pipeline, _, llm, _ = _pipeline(make_engine, fakes, transcriber=transcriber)

    with pytest.raises(TranscriptionError) as excinfo:
        await pipeline.process_turn(b"audio", HISTORY)

    assert not isinstance(excinfo.value, NoSpeechDetectedError)
    assert excinfo.value.category == "transcription_failed"
    assert llm.calls == []


@pytest.mark.asyncio
async def test_generation_error_is_fatal(make_engine, fakes):
    pipeline, _, _, synthesizer = _pipeline(make_engine, fakes, replies=[RuntimeError("upstream 503")])

    with pytest.raises(GenerationError) as excinfo:
        await pipeline.process_turn(b"audio", HISTORY)

    assert excinfo.value.stage is PipelineStage.GENERATION
    assert synthesizer.calls == []


@pytest.mark.asyncio
async def test_empty_completion_gets_placeholder_reply(make_engine, fakes):
    pipeline, _, _, synthesizer = _pipeline(make_engine, fakes, replies=[""])
    result = await pipeline.process_turn(b"audio", HISTORY)
    assert result.reply == "I didn't catch that."
    assert synthesizer.calls == ["I didn't catch that."]


@pytest.mark.asyncio
async def test_synthesis_failure_degrades_to_text_only(make_engine, fakes, sleeps):
    pipeline, _, _, synthesizer = _pipeline(make_engine, fakes, failures=99)

    result = await pipeline.process_turn(b"audio", HISTORY)

    assert result.transcript == "I would sort first"
    assert result.reply == "Why sort?"
    assert result.audio_base64 == ""
    assert len(synthesizer.calls) == 3
    assert sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_synthesis_recovers_before_attempts_run_out(make_engine, fakes):
    pipeline, _, _, synthesizer = _pipeline(make_engine, fakes, failures=2)
    result = await pipeline.process_turn(b"audio", HISTORY)
    assert result.audio_base64
    assert len(synthesizer.calls) == 3


@pytest.mark.asyncio
async def test_missing_credentials_are_not_retried(make_engine, fakes, sleeps):
    synthesizer = fakes["synthesizer"](failures=99, error=SpeechBackendError("MURF_API_KEY is not configured", retryable=False))
    pipeline, _, _, _ = _pipeline(make_engine, fakes, synthesizer=synthesizer)

    result = await pipeline.process_turn(b"audio", HISTORY)

    assert result.audio_base64 == ""
    assert len(synthesizer.calls) == 1
    assert sleeps == []


@pytest.mark.asyncio
async def test_transition_folds_current_title_into_exclusions(make_engine, fakes):
    pipeline, _, llm, _ = _pipeline(
        make_engine,
        fakes,
        transcripts=["Can we move on to the next question?"],
        replies=["Sure, let's switch."],
    )

    result = await pipeline.process_turn(
        b"audio",
        HISTORY,
        current_question_title="Two Sum",
        previous_titles=["Valid Parentheses"],
        interview_type="dsa",
    )

    assert result.new_question is not None
    assert result.new_question.title == "Group Anagrams"
    question_prompt = llm.calls_of("question")[0]["messages"][0]["content"]
    assert "AVOID these topics already covered: Valid Parentheses, Two Sum" in question_prompt


@pytest.mark.asyncio
async def test_transition_without_current_title(make_engine, fakes):
    pipeline, _, llm, _ = _pipeline(make_engine, fakes, transcripts=["skip"], replies=["Okay."])
    await pipeline.process_turn(b"audio", HISTORY)
    assert "AVOID" not in llm.calls_of("question")[0]["messages"][0]["content"]


@pytest.mark.asyncio
@pytest.mark.parametrize("audio, history", [(b"", HISTORY), (b"audio", []), (b"audio", [{"role": "robot", "content": "x"}])])
async def test_input_errors_make_no_backend_calls(make_engine, fakes, audio, history):
    pipeline, transcriber, llm, _ = _pipeline(make_engine, fakes)

    with pytest.raises(InterviewInputError):
        await pipeline.process_turn(audio, history)

    assert transcriber.calls == []
    assert llm.calls == []


@pytest.mark.asyncio
async def test_exhausted_synthesis_surfaces_as_synthesis_stage(make_engine, fakes):
    pipeline, _, _, _ = _pipeline(make_engine, fakes, failures=99)

    with pytest.raises(SynthesisError) as excinfo:
        await pipeline._synthesize_audio("Why sort?")

    assert excinfo.value.stage is PipelineStage.SYNTHESIS
    assert isinstance(excinfo.value.__cause__, SpeechBackendError)
    assert await pipeline.synthesize("Why sort?") == ""
