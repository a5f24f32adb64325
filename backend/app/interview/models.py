from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["user", "assistant", "system"]

DIFFICULTIES = ("Easy", "Medium", "Hard")
VERDICTS = ("Strong Hire", "Hire", "Lean Hire", "Lean No Hire", "No Hire")


def clamp_score(value, default: int = 6) -> int:
    try:
        return max(1, min(10, int(round(float(value)))))
    except (TypeError, ValueError):
        return default


def normalize_difficulty(value, default: str = "Medium") -> str:
    text = str(value or "").strip().lower()
    for option in DIFFICULTIES:
        if option.lower() == text:
            return option
    return default


def _text_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [str(item).strip() for item in value if str(item or "").strip()]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value):
        return "" if value is None else str(value)


class Example(BaseModel):
    input: str = ""
    output: str = ""
    explanation: Optional[str] = None

    @field_validator("input", "output", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)


class Question(BaseModel):
    title: str
    description: str
    constraints: list[str] = Field(default_factory=list)
    examples: list[Example] = Field(default_factory=list)
    difficulty: str = "Medium"

    @field_validator("title", "description", mode="before")
    @classmethod
    def _require_text(cls, value):
        text = str(value or "").strip()
        if not text:
            raise ValueError("must be non-empty")
        return text

    @field_validator("constraints", mode="before")
    @classmethod
    def _coerce_constraints(cls, value):
        return _text_list(value)

    @field_validator("examples", mode="before")
    @classmethod
    def _coerce_examples(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, Example))]

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, value):
        return normalize_difficulty(value)


class SubScore(BaseModel):
    score: int = 6
    feedback: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value):
        return clamp_score(value)

    @field_validator("feedback", mode="before")
    @classmethod
    def _coerce_feedback(cls, value):
        return str(value or "").strip()


class FeedbackReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    overall_score: int
    overall_verdict: str
    summary: str = ""
    strengths: list[str] = Field(default_factory=list)
    areas_for_improvement: list[str] = Field(default_factory=list)
    technical_skills: SubScore
    problem_solving: SubScore
    communication: SubScore
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("overall_score", mode="before")
    @classmethod
    def _clamp_overall(cls, value):
        return clamp_score(value)

    @field_validator("overall_verdict", mode="before")
    @classmethod
    def _known_verdict(cls, value):
        text = " ".join(str(value or "").replace("-", " ").split()).lower()
        for verdict in VERDICTS:
            if verdict.lower() == text:
                return verdict
        raise ValueError(f"unknown verdict: {value!r}")

    @field_validator("strengths", "areas_for_improvement", "recommendations", mode="before")
    @classmethod
    def _coerce_lists(cls, value):
        return _text_list(value)

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, value):
        return str(value or "").strip()

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class TurnResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transcript: str
    reply: str
    audio_base64: str = ""
    new_question: Optional[Question] = None

    @property
    def transitioned(self) -> bool:
        return self.new_question is not None


class IntroResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    intro_text: str
    audio_base64: Optional[str] = None
