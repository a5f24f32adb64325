import logging
from dataclasses import asdict, dataclass

import httpx

from core.config import Settings

logger = logging.getLogger("app.services.murf_service")


class SpeechBackendError(RuntimeError):
    def __init__(self, message: str, retryable: bool = True, status_code: int | None = None):
        super().__init__(message)
        self.retryable = bool(retryable)
        self.status_code = status_code


def is_retryable_speech_error(exc: BaseException) -> bool:
    if isinstance(exc, SpeechBackendError):
        return exc.retryable
    return isinstance(exc, (httpx.TransportError, TimeoutError))


@dataclass(frozen=True)
class VoiceProfile:
    voice_id: str = "en-US-matthew"
    locale: str = "en-US"
    model: str = "FALCON"
    audio_format: str = "MP3"
    sample_rate: int = 24000
    channel_type: str = "MONO"

    def to_payload(self, text: str) -> dict:
        return {
            "voiceId": self.voice_id,
            "text": text,
            "multiNativeLocale": self.locale,
            "model": self.model,
            "format": self.audio_format,
            "sampleRate": self.sample_rate,
            "channelType": self.channel_type,
        }


class MurfSpeechSynthesizer:
    def __init__(
        self,
        api_key: str = "",
        api_url: str = "https://global.api.murf.ai/v1/speech/stream",
        voice: VoiceProfile | None = None,
        min_audio_bytes: int = 1000,
        timeout_sec: float = 20.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = str(api_key or "").strip()
        self.api_url = api_url
        self.voice = voice or VoiceProfile()
        self.min_audio_bytes = max(0, int(min_audio_bytes))
        self.timeout_sec = float(timeout_sec)
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "MurfSpeechSynthesizer":
        voice = VoiceProfile(
            voice_id=settings.tts_voice_id,
            locale=settings.tts_locale,
            model=settings.tts_model,
            audio_format=settings.tts_format,
            sample_rate=settings.tts_sample_rate,
            channel_type=settings.tts_channel_type,
        )
        return cls(
            api_key=settings.murf_api_key,
            api_url=settings.murf_api_url,
            voice=voice,
            min_audio_bytes=settings.tts_min_audio_bytes,
            timeout_sec=settings.tts_timeout_sec,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {"Content-Type": "application/json", "api-key": self.api_key}
        if self._http_client is not None:
            return await self._http_client.post(self.api_url, json=payload, headers=headers, timeout=self.timeout_sec)
        async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
            return await client.post(self.api_url, json=payload, headers=headers)

    async def synthesize(self, text: str) -> bytes:
        clean_text = str(text or "").strip()
        if not clean_text:
            raise SpeechBackendError("no text to synthesize", retryable=False)
        if not self.configured:
            raise SpeechBackendError("MURF_API_KEY is not configured", retryable=False)

        try:
            response = await self._post(self.voice.to_payload(clean_text))
        except httpx.TransportError as exc:
            logger.warning("murf transport error | err=%s", exc)
            raise SpeechBackendError(f"speech backend unreachable: {exc.__class__.__name__}", retryable=True) from exc
        status = int(response.status_code)
        if status >= 400:
            retryable = status == 429 or status >= 500
            logger.warning("murf error | status=%s retryable=%s", status, retryable)
            raise SpeechBackendError(f"speech backend returned HTTP {status}", retryable=retryable, status_code=status)

        audio = response.content or b""
        if len(audio) < self.min_audio_bytes:
            raise SpeechBackendError(
                f"audio too small ({len(audio)} bytes)",
                retryable=True,
                status_code=status,
            )
        logger.info("murf audio ok | bytes=%s voice=%s", len(audio), self.voice.voice_id)
        return audio

    def describe(self) -> dict:
        return {"url": self.api_url, "configured": self.configured, **asdict(self.voice)}
