from __future__ import annotations

import logging
import random
from typing import Iterable, Sequence

from pydantic import ValidationError

from app.interview.models import Question, normalize_difficulty
from app.interview.parsing import Decoded, extract_json_dict
from app.prompts import build_question_messages, normalize_interview_type
from app.services.llm_service import ChatCompletionService
from app.system_metrics import increment_metric
from core.logger import log_event

logger = logging.getLogger("app.interview.questions")

QUESTION_TEMPERATURE = 0.8
QUESTION_MAX_TOKENS = 800
MIN_RESPONSE_CHARS = 50


def _q(title: str, description: str, difficulty: str = "Medium", constraints=(), examples=()) -> Question:
    return Question(
        title=title,
        description=description,
        difficulty=difficulty,
        constraints=list(constraints),
        examples=[dict(item) for item in examples],
    )


FALLBACK_QUESTIONS: dict[str, tuple[Question, ...]] = {
    "dsa": (
        _q(
            "Two Sum",
            "Given an array of integers nums and an integer target, return indices of the two numbers such that they add up to target.",
            "Easy",
            ["2 <= nums.length <= 10^4", "-10^9 <= nums[i] <= 10^9", "Only one valid answer exists"],
            [{"input": "nums = [2,7,11,15], target = 9", "output": "[0,1]", "explanation": "nums[0] + nums[1] == 9"}],
        ),
        _q(
            "Valid Parentheses",
            "Given a string s containing just the characters '(', ')', '{', '}', '[' and ']', determine if the input string is valid.",
            "Easy",
            ["1 <= s.length <= 10^4", "s consists of parentheses only"],
            [{"input": "s = \"()[]{}\"", "output": "true"}],
        ),
        _q(
            "Best Time to Buy and Sell Stock",
            "Given an array prices where prices[i] is the price of a stock on day i, return the maximum profit from one buy followed by one later sell, or 0 if no profit is possible.",
            "Easy",
            ["1 <= prices.length <= 10^5", "0 <= prices[i] <= 10^4"],
            [{"input": "prices = [7,1,5,3,6,4]", "output": "5", "explanation": "Buy on day 2 at 1 and sell on day 5 at 6."}],
        ),
        _q(
            "Longest Substring Without Repeating Characters",
            "Given a string s, find the length of the longest substring without repeating characters.",
            "Medium",
            ["0 <= s.length <= 5 * 10^4", "s consists of English letters, digits, symbols and spaces"],
            [{"input": "s = \"abcabcbb\"", "output": "3", "explanation": "The answer is \"abc\"."}],
        ),
        _q(
            "Merge Intervals",
            "Given an array of intervals where intervals[i] = [start, end], merge all overlapping intervals and return the non-overlapping intervals that cover all the input.",
            "Medium",
            ["1 <= intervals.length <= 10^4", "0 <= start <= end <= 10^4"],
            [{"input": "intervals = [[1,3],[2,6],[8,10]]", "output": "[[1,6],[8,10]]"}],
        ),
    ),
    "frontend": (
        _q("React Component Lifecycle", "Discuss how React components mount, update and unmount. How do hooks like useEffect map to lifecycle phases, and how do you avoid unnecessary re-renders?"),
        _q("CSS Box Model & Flexbox", "Explain the CSS box model and how box-sizing changes it. When would you reach for Flexbox versus Grid, and how do you build a responsive layout?"),
        _q("Browser Rendering & Performance", "Walk through how a browser turns HTML, CSS and JavaScript into pixels. What causes layout thrashing, and how do you measure and fix slow pages?"),
    ),
    "backend": (
        _q("REST API Design", "Discuss principles of RESTful API design. How do you handle versioning, pagination and error responses, and what makes an endpoint idempotent?"),
        _q("Database Indexing", "Explain how database indexes work. When should you add an index, what are the write-side costs, and how do composite indexes behave?"),
        _q("Caching Strategies", "Compare cache-aside, write-through and write-behind caching. How do you handle invalidation and protect the database from a cache stampede?"),
    ),
    "fullstack": (
        _q("Full Application Architecture", "Describe how you would architect a full-stack application from scratch. How do the frontend, API layer and database interact, and where does authentication live?"),
        _q("API Integration & State Management", "How do you keep client state in sync with server data? Discuss caching fetched data, optimistic updates and handling partial failures."),
    ),
    "cybersecurity": (
        _q("OWASP Top 10", "Discuss the OWASP Top 10 vulnerabilities. Pick two, explain how an attacker exploits them, and how you would prevent them in a web application."),
        _q("Authentication & Session Security", "How do you securely store passwords and manage sessions? Discuss hashing algorithms, token expiry and defending against credential stuffing."),
    ),
    "devops": (
        _q("Docker & Kubernetes", "Explain containerization with Docker and orchestration with Kubernetes. How do deployments, services and health probes work together during a rollout?"),
        _q("CI/CD Pipeline Design", "Design a CI/CD pipeline for a web service. What stages would you include, how do you manage secrets, and how do you roll back a bad release?"),
    ),
}


def _title_key(title: str) -> str:
    return " ".join(str(title or "").split()).casefold()


def pick_fallback_question(interview_type: str, exclude_titles: Iterable[str] = (), rng: random.Random | None = None) -> Question:
    """First pool entry whose title is not excluded; a random pool entry when every title is taken."""
    pool = FALLBACK_QUESTIONS[normalize_interview_type(interview_type)]
    excluded = {_title_key(t) for t in (exclude_titles or [])}
    for candidate in pool:
        if _title_key(candidate.title) not in excluded:
            return candidate.model_copy(deep=True)
    return (rng or random).choice(pool).model_copy(deep=True)


class QuestionProvider:
    def __init__(self, llm: ChatCompletionService, timeout_sec: float = 25.0, rng: random.Random | None = None):
        self.llm = llm
        self.timeout_sec = timeout_sec
        self.rng = rng

    async def get_question_result(
        self,
        interview_type: str = "dsa",
        difficulty: str = "Medium",
        topics: Sequence[str] = (),
        exclude_titles: Sequence[str] = (),
        session_id: str = "",
    ) -> Decoded[Question]:
        kind = normalize_interview_type(interview_type)
        level = normalize_difficulty(difficulty)
        messages = build_question_messages(kind, level, topics, exclude_titles)

        error = ""
        try:
            content = await self.llm.complete(
                messages,
                temperature=QUESTION_TEMPERATURE,
                max_tokens=QUESTION_MAX_TOKENS,
                timeout_sec=self.timeout_sec,
            )
        except Exception as exc:
            content = ""
            error = f"generation failed: {exc.__class__.__name__}"
            logger.warning("question generation failed | type=%s err=%s", kind, exc)

        if not error:
            if len(content) < MIN_RESPONSE_CHARS:
                error = f"response too short ({len(content)} chars)"
            else:
                data = extract_json_dict(content)
                if data is None:
                    error = "no JSON object in response"
                else:
                    data.setdefault("difficulty", level)
                    try:
                        question = Question.model_validate(data)
                        if _title_key(question.title) in {_title_key(t) for t in exclude_titles}:
                            logger.info("generated question repeats an excluded title | title=%s", question.title)
                        log_event("question_provider", "generated", session_id, interview_type=kind, title=question.title)
                        return Decoded(value=question)
                    except ValidationError as exc:
                        error = f"{exc.error_count()} validation error(s)"

        fallback = pick_fallback_question(kind, exclude_titles, rng=self.rng)
        increment_metric("question_fallbacks_total")
        log_event("question_provider", "fallback", session_id, interview_type=kind, title=fallback.title, reason=error)
        return Decoded(value=fallback, fallback=True, error=error)

    async def get_question(
        self,
        interview_type: str = "dsa",
        difficulty: str = "Medium",
        topics: Sequence[str] = (),
        exclude_titles: Sequence[str] = (),
        session_id: str = "",
    ) -> Question:
        result = await self.get_question_result(interview_type, difficulty, topics, exclude_titles, session_id=session_id)
        return result.value
