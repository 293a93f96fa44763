"""
Text-to-Speech
==============

Courtroom voices via the ElevenLabs API. Each (language, speaker) pair maps
to a fixed voice; unknown pairs use the English judge voice.
"""

import base64
import httpx
import logging
from typing import Optional, Dict, AsyncGenerator

from .config import get_settings
from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

_COURT_VOICES = {
    "judge": "onwK4e9ZLuTAKqWW03F9",       # Daniel
    "prosecutor": "cjVigY5qzO86Huf0OWal",  # Eric
    "lawyer": "TX3LPaxmHKxFdv7VOQHJ",      # Liam
    "accused": "JBFqnCBsd6RMkjVDRZzb",     # George
    "clerk": "EXAVITQu4vr4xnSDxMaL",       # Sarah
    "ai": "CwhRBWXzGAHq8TQ4Fs17",          # Roger
}

VOICE_MAP: Dict[str, Dict[str, str]] = {
    "en": dict(_COURT_VOICES),
    "hi": dict(_COURT_VOICES),
    "hinglish": dict(_COURT_VOICES),
}

DEFAULT_VOICE_ID = VOICE_MAP["en"]["judge"]

VOICE_SETTINGS = {
    "stability": 0.6,
    "similarity_boost": 0.75,
    "style": 0.3,
    "use_speaker_boost": True,
}


def resolve_voice(language: str, speaker: str) -> str:
    return VOICE_MAP.get(language, {}).get(speaker) or DEFAULT_VOICE_ID


class ElevenLabsClient:
    """Async client for the ElevenLabs text-to-speech endpoint"""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.elevenlabs.io/v1",
        model_id: str = "eleven_multilingual_v2",
        output_format: str = "mp3_44100_128",
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_id = model_id
        self.output_format = output_format
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ElevenLabsClient":
        settings = get_settings()
        return cls(
            api_key=settings.elevenlabs_api_key,
            base_url=settings.elevenlabs_base_url,
            model_id=settings.tts_model_id,
            output_format=settings.tts_output_format,
            timeout=settings.llm_timeout,
            transport=transport,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def synthesize(
        self,
        text: str,
        speaker: str = "judge",
        language: str = "en",
        speech_rate: float = 1.0,
    ) -> bytes:
        """
        Render ``text`` in the voice for (language, speaker).

        Returns:
            Raw audio bytes (mp3)
        """
        if not self.api_key:
            raise ConfigurationError("ElevenLabs API key not configured")

        voice_id = resolve_voice(language, speaker)
        logger.info(f"TTS request: speaker={speaker}, language={language}, rate={speech_rate}, voiceId={voice_id}")

        payload = {
            "text": text,
            "model_id": self.model_id,
            "output_format": self.output_format,
            "voice_settings": {**VOICE_SETTINGS, "speed": speech_rate},
        }
        headers = {
            "xi-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        client = await self._get_client()
        try:
            response = await client.post(f"{self.base_url}/text-to-speech/{voice_id}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"ElevenLabs request failed: {e}")
            raise UpstreamError(f"ElevenLabs request failed: {e}")

        if not response.is_success:
            logger.error(f"ElevenLabs error: {response.text[:200]}")
            raise UpstreamError(f"ElevenLabs API error: {response.status_code}", upstream_status=response.status_code)

        return response.content

    async def synthesize_base64(self, *args, **kwargs) -> str:
        audio = await self.synthesize(*args, **kwargs)
        return base64.b64encode(audio).decode("ascii")


async def get_tts_client() -> AsyncGenerator[ElevenLabsClient, None]:
    """FastAPI dependency yielding a text-to-speech client for one request."""
    client = ElevenLabsClient.from_settings()
    try:
        yield client
    finally:
        await client.close()
