from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.interview.models import Message, Question


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerateQuestionRequest(CamelModel):
    interview_type: str = "dsa"
    difficulty: str = "Medium"
    topics: list[str] = Field(default_factory=list)
    previous_questions: list[str] = Field(default_factory=list)


class GenerateQuestionResponse(CamelModel):
    question: Question
    fallback: bool = False


class GenerateIntroRequest(CamelModel):
    question: Optional[dict[str, Any]] = None
    interview_type: str = "dsa"


class FeedbackRequest(CamelModel):
    messages: list[Message] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    session_id: Optional[str] = None


class FeedbackEnvelope(CamelModel):
    uid: str
    feedback: dict[str, Any]
    timestamp: int


class CreateSessionRequest(CamelModel):
    interview_type: str = "dsa"
    difficulty: str = "Medium"
    topics: list[str] = Field(default_factory=list)
    num_questions: int = 3
    user_id: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    detail: str
