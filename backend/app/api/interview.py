import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from pydantic import ValidationError

from app.db.interview_repo import InterviewRecordStore
from app.interview.engine import InterviewEngine
from app.interview.errors import InterviewInputError
from app.interview.models import Question
from app.interview.session import InterviewSession, SessionConfig
from app.schemas import (
    CreateSessionRequest,
    ErrorResponse,
    FeedbackEnvelope,
    FeedbackRequest,
    GenerateIntroRequest,
    GenerateQuestionRequest,
    GenerateQuestionResponse,
)
from app.session.registry import SessionRegistry

logger = logging.getLogger("app.api.interview")

router = APIRouter(
    prefix="/api",
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)


def _engine(request: Request) -> InterviewEngine:
    return request.app.state.engine


def _store(request: Request) -> InterviewRecordStore:
    return request.app.state.store


def _registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def _json_list(raw: str | None, field_name: str) -> list:
    text = str(raw or "").strip()
    if not text:
        return []
    try:
        value = json.loads(text)
    except ValueError:
        raise InterviewInputError(f"{field_name} must be a JSON array") from None
    if not isinstance(value, list):
        raise InterviewInputError(f"{field_name} must be a JSON array")
    return value


def _topics(raw: str | None) -> list[str]:
    text = str(raw or "").strip()
    if text.startswith("["):
        return [str(item) for item in _json_list(text, "topics")]
    return [item.strip() for item in text.split(",") if item.strip()]


async def _read_audio(audio: UploadFile | None) -> bytes:
    if audio is None:
        return b""
    return await audio.read()


def _live_session(request: Request, session_id: str) -> InterviewSession:
    session = _registry(request).get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


# ----------- Stateless endpoints -----------

@router.post("/generate-question", response_model=GenerateQuestionResponse, response_model_by_alias=True)
async def generate_question(req: GenerateQuestionRequest, request: Request):
    result = await _engine(request).questions.get_question_result(
        req.interview_type,
        req.difficulty,
        req.topics,
        req.previous_questions,
    )
    return GenerateQuestionResponse(question=result.value, fallback=result.fallback)


@router.post("/generate-intro")
async def generate_intro(req: GenerateIntroRequest, request: Request):
    if not req.question:
        raise InterviewInputError("Question is required")
    try:
        question = Question.model_validate(req.question)
    except ValidationError:
        raise InterviewInputError("Question must include a title and description") from None
    intro = await _engine(request).intro.synthesize_intro(question, req.interview_type)
    return intro.model_dump(by_alias=True)


@router.post("/process-turn")
async def process_turn(
    request: Request,
    audio: UploadFile | None = File(None),
    history: str | None = Form(None),
    code: str = Form(""),
    currentQuestionTitle: str = Form(""),
    previousQuestions: str = Form("[]"),
    interviewType: str = Form("dsa"),
    difficulty: str = Form("Medium"),
    topics: str = Form(""),
):
    audio_bytes = await _read_audio(audio)
    if not audio_bytes or not str(history or "").strip():
        raise InterviewInputError("Missing audio or history")

    messages = _json_list(history, "history")
    previous = [str(item) for item in _json_list(previousQuestions, "previousQuestions")]
    result = await _engine(request).pipeline.process_turn(
        audio_bytes,
        messages,
        code,
        currentQuestionTitle,
        previous,
        interviewType,
        difficulty=difficulty,
        topics=_topics(topics),
    )
    return result.model_dump(by_alias=True)


@router.post("/feedback", response_model=FeedbackEnvelope, response_model_by_alias=True)
async def generate_feedback(req: FeedbackRequest, request: Request):
    if not req.messages:
        raise InterviewInputError("No interview history provided")
    report = await _engine(request).feedback.synthesize_feedback(req.messages, req.questions, session_id=req.session_id or "")
    record = _store(request).save_feedback_report(report.to_wire(), session_id=req.session_id, questions=req.questions)
    return FeedbackEnvelope(uid=record["uid"], feedback=record["feedback"], timestamp=record["timestamp"])


@router.get("/feedback/{uid}")
def get_feedback(uid: str, request: Request):
    record = _store(request).get_feedback_record(uid)
    if record is None:
        raise HTTPException(status_code=404, detail="Feedback not found")
    return record


# ----------- Session endpoints -----------

@router.post("/sessions")
async def create_session(req: CreateSessionRequest, request: Request):
    config = SessionConfig.build(req.interview_type, req.difficulty, req.topics, req.num_questions)
    session = _engine(request).new_session(config, user_id=req.user_id or "")
    _registry(request).register(session)
    intro = await session.start()
    snapshot = session.snapshot()
    _store(request).save_session_record(snapshot)
    return {"session": snapshot, "intro": intro.model_dump(by_alias=True)}


@router.get("/sessions/{session_id}")
def get_session(session_id: str, request: Request, user_id: Optional[str] = None):
    session = _registry(request).get_session(session_id)
    record = session.snapshot() if session is not None else _store(request).get_session_record(session_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Session not found")
    if user_id is not None and str(record.get("user_id") or "") != user_id:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"session": record}


@router.post("/sessions/{session_id}/turn")
async def session_turn(
    session_id: str,
    request: Request,
    audio: UploadFile | None = File(None),
    code: str = Form(""),
):
    session = _live_session(request, session_id)
    audio_bytes = await _read_audio(audio)
    if not audio_bytes:
        raise InterviewInputError("Missing audio")

    _registry(request).touch(session_id)
    result = await session.process_turn(audio_bytes, code)
    snapshot = session.snapshot()
    _store(request).save_session_record(snapshot)
    payload: dict[str, Any] = result.model_dump(by_alias=True)
    payload["session"] = snapshot
    return payload


@router.post("/sessions/{session_id}/end", response_model=FeedbackEnvelope, response_model_by_alias=True)
async def end_session(session_id: str, request: Request):
    session = _live_session(request, session_id)
    report = await session.end()
    _registry(request).mark_inactive(session_id)

    store = _store(request)
    record = store.save_feedback_report(report.to_wire(), session_id=session_id, questions=session.covered_titles)
    snapshot = session.snapshot()
    snapshot["feedback_uid"] = record["uid"]
    store.save_session_record(snapshot)
    return FeedbackEnvelope(uid=record["uid"], feedback=record["feedback"], timestamp=record["timestamp"])
