import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=True)

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3001",
)


def _env_str(name: str, default: str = "") -> str:
    return str(os.getenv(name) or default).strip()


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    try:
        value = float(os.getenv(name, default))
    except (TypeError, ValueError):
        value = default
    return max(minimum, value)


def _env_int(name: str, default: int, minimum: int = 0, maximum: int | None = None) -> int:
    try:
        value = int(os.getenv(name, default))
    except (TypeError, ValueError):
        value = default
    value = max(minimum, value)
    return value if maximum is None else min(maximum, value)


@dataclass(frozen=True)
class Settings:
    # text generation (OpenAI-compatible endpoint, Groq by default)
    llm_api_key: str = ""
    llm_base_url: str = "https://api.groq.com/openai/v1"
    model_name: str = "llama-3.3-70b-versatile"

    # speech-to-text
    deepgram_api_key: str = ""
    stt_model: str = "nova-2"
    stt_language: str = "en-US"

    # text-to-speech
    murf_api_key: str = ""
    murf_api_url: str = "https://global.api.murf.ai/v1/speech/stream"
    tts_voice_id: str = "en-US-matthew"
    tts_locale: str = "en-US"
    tts_model: str = "FALCON"
    tts_format: str = "MP3"
    tts_sample_rate: int = 24000
    tts_channel_type: str = "MONO"
    tts_min_audio_bytes: int = 1000

    # per-call timeouts, seconds
    stt_timeout_sec: float = 30.0
    llm_timeout_sec: float = 20.0
    question_timeout_sec: float = 25.0
    feedback_timeout_sec: float = 45.0
    tts_timeout_sec: float = 20.0

    tts_retry_base_delay_sec: float = 0.5
    turn_tts_max_attempts: int = 3
    intro_tts_max_attempts: int = 2

    cors_allow_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    session_cleanup_ttl_sec: int = 1800
    session_cleanup_interval_sec: int = 120
    data_dir: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        raw_origins = _env_str("CORS_ALLOW_ORIGINS")
        origins = tuple(item.strip() for item in raw_origins.split(",") if item.strip()) or DEFAULT_CORS_ORIGINS
        return cls(
            llm_api_key=_env_str("LLM_API_KEY") or _env_str("GROQ_API_KEY"),
            llm_base_url=_env_str("LLM_BASE_URL", cls.llm_base_url),
            model_name=_env_str("MODEL_NAME", cls.model_name),
            deepgram_api_key=_env_str("DEEPGRAM_API_KEY"),
            stt_model=_env_str("STT_MODEL", cls.stt_model),
            stt_language=_env_str("STT_LANGUAGE", cls.stt_language),
            murf_api_key=_env_str("MURF_API_KEY"),
            murf_api_url=_env_str("MURF_API_URL", cls.murf_api_url),
            tts_voice_id=_env_str("TTS_VOICE_ID", cls.tts_voice_id),
            tts_locale=_env_str("TTS_LOCALE", cls.tts_locale),
            tts_model=_env_str("TTS_MODEL", cls.tts_model),
            tts_format=_env_str("TTS_FORMAT", cls.tts_format),
            tts_sample_rate=_env_int("TTS_SAMPLE_RATE", cls.tts_sample_rate, minimum=8000),
            tts_channel_type=_env_str("TTS_CHANNEL_TYPE", cls.tts_channel_type),
            tts_min_audio_bytes=_env_int("TTS_MIN_AUDIO_BYTES", cls.tts_min_audio_bytes),
            stt_timeout_sec=_env_float("STT_TIMEOUT_SEC", cls.stt_timeout_sec, minimum=1.0),
            llm_timeout_sec=_env_float("LLM_TIMEOUT_SEC", cls.llm_timeout_sec, minimum=1.0),
            question_timeout_sec=_env_float("QUESTION_TIMEOUT_SEC", cls.question_timeout_sec, minimum=1.0),
            feedback_timeout_sec=_env_float("FEEDBACK_TIMEOUT_SEC", cls.feedback_timeout_sec, minimum=1.0),
            tts_timeout_sec=_env_float("TTS_TIMEOUT_SEC", cls.tts_timeout_sec, minimum=1.0),
            tts_retry_base_delay_sec=_env_float("TTS_RETRY_BASE_DELAY_SEC", cls.tts_retry_base_delay_sec),
            turn_tts_max_attempts=_env_int("TURN_TTS_MAX_ATTEMPTS", cls.turn_tts_max_attempts, minimum=1, maximum=3),
            intro_tts_max_attempts=_env_int("INTRO_TTS_MAX_ATTEMPTS", cls.intro_tts_max_attempts, minimum=1, maximum=2),
            cors_allow_origins=origins,
            session_cleanup_ttl_sec=_env_int("SESSION_CLEANUP_TTL_SEC", cls.session_cleanup_ttl_sec, minimum=60),
            session_cleanup_interval_sec=_env_int("SESSION_CLEANUP_INTERVAL_SEC", cls.session_cleanup_interval_sec, minimum=30),
            data_dir=_env_str("DATA_DIR"),
            log_level=_env_str("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Resolve settings once per process; call ``get_settings.cache_clear()`` after changing env."""
    return Settings.from_env()
