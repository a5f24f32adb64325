import logging
from dataclasses import dataclass
from typing import Any

import httpx
from deepgram import DeepgramClient, PrerecordedOptions

from core.config import Settings

logger = logging.getLogger("app.services.deepgram_service")


@dataclass(frozen=True)
class TranscriptionResult:
    transcript: str | None = None
    error: str | None = None


def _first_transcript(response: Any) -> str:
    """Pull channels[0].alternatives[0].transcript from an SDK response object or plain dict."""
    if hasattr(response, "to_dict"):
        response = response.to_dict()
    if not isinstance(response, dict):
        return ""
    channels = (response.get("results") or {}).get("channels") or []
    if not channels:
        return ""
    alternatives = (channels[0] or {}).get("alternatives") or []
    if not alternatives:
        return ""
    return str((alternatives[0] or {}).get("transcript") or "").strip()


class DeepgramTranscriber:
    def __init__(
        self,
        api_key: str = "",
        model: str = "nova-2",
        language: str = "en-US",
        timeout_sec: float = 30.0,
        client: Any = None,
    ):
        self.api_key = str(api_key or "").strip()
        self.model = model
        self.language = language
        self.timeout_sec = float(timeout_sec)
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeepgramTranscriber":
        return cls(
            api_key=settings.deepgram_api_key,
            model=settings.stt_model,
            language=settings.stt_language,
            timeout_sec=settings.stt_timeout_sec,
        )

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("DEEPGRAM_API_KEY is not configured")
            self._client = DeepgramClient(api_key=self.api_key)
            logger.info("[DG] DeepgramClient created | model=%s language=%s", self.model, self.language)
        return self._client

    async def transcribe(self, audio: bytes) -> TranscriptionResult:
        """Never raises; backend failures come back in ``error``."""
        if not audio:
            return TranscriptionResult(transcript=None, error="empty audio payload")

        options = PrerecordedOptions(
            model=self.model,
            smart_format=True,
            language=self.language,
        )
        try:
            response = await self.client.listen.asyncrest.v("1").transcribe_file(
                {"buffer": bytes(audio)},
                options,
                timeout=httpx.Timeout(self.timeout_sec, connect=10.0),
            )
        except Exception as exc:
            logger.warning("[DG] transcription failed | bytes=%s err=%s", len(audio), exc)
            return TranscriptionResult(transcript=None, error=str(exc) or exc.__class__.__name__)

        transcript = _first_transcript(response)
        return TranscriptionResult(transcript=transcript or None, error=None)
