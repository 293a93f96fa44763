"""
Text-to-Speech Tests
"""

import base64
import json

import httpx
import pytest

from nyayasetu.errors import ConfigurationError, UpstreamError
from nyayasetu.tts import DEFAULT_VOICE_ID, VOICE_MAP, ElevenLabsClient, get_tts_client, resolve_voice


def _tts_client(handler, api_key="el-key"):
    return ElevenLabsClient(api_key=api_key, base_url="https://tts.test/v1", transport=httpx.MockTransport(handler))


class TestVoiceMap:
    @pytest.mark.parametrize("language", ["en", "hi", "hinglish"])
    def test_every_language_has_every_court_role(self, language):
        assert set(VOICE_MAP[language]) == {"judge", "prosecutor", "lawyer", "accused", "clerk", "ai"}

    def test_known_pair(self):
        assert resolve_voice("hi", "prosecutor") == VOICE_MAP["hi"]["prosecutor"]

    def test_unknown_pair_uses_judge_voice(self):
        assert resolve_voice("fr", "narrator") == DEFAULT_VOICE_ID
        assert resolve_voice("en", "narrator") == DEFAULT_VOICE_ID


class TestElevenLabsClient:
    @pytest.mark.asyncio
    async def test_synthesize_request(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["xi-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"ID3-audio")

        client = _tts_client(handler)
        audio = await client.synthesize_base64("Court is in session", speaker="clerk", language="en", speech_rate=1.2)
        await client.close()

        assert base64.b64decode(audio) == b"ID3-audio"
        assert seen["url"] == f"https://tts.test/v1/text-to-speech/{VOICE_MAP['en']['clerk']}"
        assert seen["key"] == "el-key"
        assert seen["body"]["model_id"] == "eleven_multilingual_v2"
        assert seen["body"]["voice_settings"]["speed"] == 1.2
        assert seen["body"]["voice_settings"]["stability"] == 0.6

    @pytest.mark.asyncio
    async def test_missing_key(self):
        client = _tts_client(lambda request: httpx.Response(200), api_key=None)
        with pytest.raises(ConfigurationError) as exc:
            await client.synthesize("hello")
        assert exc.value.message == "ElevenLabs API key not configured"

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        client = _tts_client(lambda request: httpx.Response(401, text="bad key"))
        with pytest.raises(UpstreamError) as exc:
            await client.synthesize("hello")
        assert exc.value.message == "ElevenLabs API error: 401"
        assert exc.value.status_code == 500
        await client.close()


class TestTextToSpeechEndpoint:
    def test_returns_base64_audio(self, client, register):
        from nyayasetu.api import app

        app.dependency_overrides[get_tts_client] = lambda: _tts_client(lambda request: httpx.Response(200, content=b"mp3"))
        headers, _ = register()
        response = client.post(
            "/api/text-to-speech",
            json={"text": "Silence in court", "speaker": "judge", "speechRate": 0.9},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json() == {"audioContent": base64.b64encode(b"mp3").decode("ascii")}

    def test_unconfigured_key_is_500(self, client, register):
        headers, _ = register()
        response = client.post("/api/text-to-speech", json={"text": "Silence"}, headers=headers)
        assert response.status_code == 500
        assert response.json() == {"error": "ElevenLabs API key not configured"}
