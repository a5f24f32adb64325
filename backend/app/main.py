from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import asyncio
import logging
from pathlib import Path

from app.api.interview import router as interview_router
from app.db.interview_repo import InterviewRecordStore
from app.interview.engine import InterviewEngine, build_interview_engine
from app.interview.errors import (
    InterviewInputError,
    NoSpeechDetectedError,
    PipelineError,
    SessionStateError,
)
from app.schemas import ErrorResponse
from app.session.registry import SessionRegistry
from app.system_metrics import get_metrics_snapshot, set_metric
from core.config import Settings, get_settings
from core.logger import configure_logging

logger = logging.getLogger("app.main")


def _error_body(category: str, detail: str) -> dict:
    return ErrorResponse(error=category, detail=detail).model_dump()


async def _input_error_handler(request: Request, exc: InterviewInputError):
    return JSONResponse(status_code=400, content=_error_body(exc.category, str(exc) or "Invalid request"))


async def _pipeline_error_handler(request: Request, exc: PipelineError):
    status_code = 422 if isinstance(exc, NoSpeechDetectedError) else 502
    logger.warning("turn failed | path=%s stage=%s category=%s err=%s", request.url.path, exc.stage.value, exc.category, exc.message)
    return JSONResponse(status_code=status_code, content=_error_body(exc.category, exc.detail))


async def _session_state_handler(request: Request, exc: SessionStateError):
    return JSONResponse(status_code=409, content=_error_body(exc.category, str(exc)))


def _default_store(settings: Settings) -> InterviewRecordStore:
    if not settings.data_dir:
        return InterviewRecordStore()
    return InterviewRecordStore(Path(settings.data_dir) / "interview_records.json")


def create_app(
    engine: InterviewEngine | None = None,
    store: InterviewRecordStore | None = None,
    registry: SessionRegistry | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Mock Interview Backend")
    app.state.settings = settings
    app.state.engine = engine or build_interview_engine(settings)
    app.state.store = store or _default_store(settings)
    app.state.registry = registry or SessionRegistry()
    app.state.cleanup_task = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )
    app.add_exception_handler(InterviewInputError, _input_error_handler)
    app.add_exception_handler(PipelineError, _pipeline_error_handler)
    app.add_exception_handler(SessionStateError, _session_state_handler)

    @app.on_event("startup")
    async def startup_banner():
        logger.info("[SYSTEM] CORS allow_origins=%s", list(settings.cors_allow_origins))
        logger.info(
            "[SYSTEM] session cleanup ttl_sec=%s interval_sec=%s",
            settings.session_cleanup_ttl_sec,
            settings.session_cleanup_interval_sec,
        )

        def _persist_abandoned(session):
            app.state.store.save_session_record(session.snapshot())

        async def _session_cleanup_loop():
            while True:
                await asyncio.sleep(settings.session_cleanup_interval_sec)
                removed = app.state.registry.cleanup_inactive(
                    settings.session_cleanup_ttl_sec,
                    on_abandon=_persist_abandoned,
                )
                if removed > 0:
                    logger.info("[SYSTEM] cleaned inactive sessions=%s", removed)

        app.state.cleanup_task = asyncio.create_task(_session_cleanup_loop())

    @app.on_event("shutdown")
    async def shutdown_handler():
        task = app.state.cleanup_task
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            finally:
                app.state.cleanup_task = None
        logger.info("[SYSTEM] shutdown complete")

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok", "service": "backend"}

    @app.get("/api/metrics")
    def system_metrics_route():
        set_metric("sessions_active", app.state.registry.active_count())
        return get_metrics_snapshot(extra={
            "tts": app.state.engine.pipeline.synthesizer.describe(),
        })

    app.include_router(interview_router)
    return app


app = create_app()
