import json
import random

import pytest

from app.interview.models import Question
from app.interview.questions import FALLBACK_QUESTIONS, QuestionProvider, pick_fallback_question


def test_fallback_skips_excluded_titles():
    pool = FALLBACK_QUESTIONS["dsa"]
    excluded = [pool[0].title, pool[1].title.upper()]

    question = pick_fallback_question("dsa", excluded)

    assert question.title == pool[2].title
    assert question.title not in {q.title for q in pool[:2]}


@pytest.mark.parametrize("interview_type", sorted(FALLBACK_QUESTIONS))
def test_fallback_avoids_every_strict_subset_of_pool(interview_type):
    pool = FALLBACK_QUESTIONS[interview_type]
    for size in range(len(pool)):
        excluded = {q.title for q in pool[:size]}
        assert pick_fallback_question(interview_type, excluded).title not in excluded


def test_fallback_with_everything_excluded_still_returns_pool_member():
    pool = FALLBACK_QUESTIONS["backend"]
    question = pick_fallback_question("backend", [q.title for q in pool], rng=random.Random(7))
    assert question.title in {q.title for q in pool}


def test_unknown_type_uses_coding_pool():
    assert pick_fallback_question("basket-weaving").title == FALLBACK_QUESTIONS["dsa"][0].title


def test_fallback_returns_a_copy():
    question = pick_fallback_question("dsa")
    question.constraints.append("mutated")
    assert "mutated" not in FALLBACK_QUESTIONS["dsa"][0].constraints


@pytest.mark.asyncio
async def test_provider_parses_generated_question(fakes):
    llm = fakes["llm"]()
    provider = QuestionProvider(llm)

    result = await provider.get_question_result("dsa", "medium", ["Hash Maps"], ["Two Sum"])

    assert result.fallback is False
    assert result.value.title == "Group Anagrams"
    call = llm.calls_of("question")[0]
    assert call["temperature"] == 0.8
    assert call["max_tokens"] == 800
    system_prompt = call["messages"][0]["content"]
    assert "AVOID these topics already covered: Two Sum" in system_prompt
    assert "Focus specifically on these topics: Hash Maps" in system_prompt
    assert call["messages"][1]["content"] == "Generate a Medium difficulty DSA interview question."


@pytest.mark.asyncio
async def test_provider_accepts_json_wrapped_in_prose(fakes):
    payload = json.dumps({"title": "REST API Design", "description": "Talk about resource modelling and versioning."})
    llm = fakes["llm"](question=f"Sure! Here is a topic:\n```json\n{payload}\n```")

    question = await QuestionProvider(llm).get_question("backend", "Hard")

    assert question.title == "REST API Design"
    assert question.difficulty == "Hard"
    assert llm.calls_of("question")[0]["messages"][1]["content"].endswith("BACKEND interview topic.")


@pytest.mark.parametrize(
    "raw",
    [
        RuntimeError("connection reset"),
        "",
        "not json at all, just a very long rambling answer without braces anywhere",
        json.dumps({"title": "", "description": "Missing a usable title, which makes this unusable"}),
        json.dumps({"title": "Only a title but no description field at all here"}),
        '{"title": "x"}',
    ],
)
@pytest.mark.asyncio
async def test_provider_always_returns_well_formed_question(fakes, raw):
    provider = QuestionProvider(fakes["llm"](question=raw))

    result = await provider.get_question_result("dsa", "Medium", [], ["Two Sum"])

    assert result.fallback is True
    assert isinstance(result.value, Question)
    assert result.value.title and result.value.description
    assert result.value.title != "Two Sum"


@pytest.mark.asyncio
async def test_provider_makes_a_single_attempt(fakes):
    llm = fakes["llm"](question=RuntimeError("boom"))
    await QuestionProvider(llm).get_question("frontend")
    assert len(llm.calls_of("question")) == 1
