"""
AI Router Tests
===============

Gateway pass-through, Ollama routing and upstream error mapping.
"""

import json

import httpx
import pytest

from nyayasetu.errors import ConfigurationError, RateLimitedError, CreditsExhaustedError, UpstreamError
from nyayasetu.llm.gateway import GatewayClient
from nyayasetu.llm.ollama import OllamaClient, get_ollama_client, to_ollama_messages, to_chat_completion, resolve_endpoint
from nyayasetu.llm.parsing import NOT_JSON, strip_code_fence, parse_fenced_json, extract_json_object


MESSAGES = [{"role": "user", "content": "What is Section 420 IPC?"}]


def _gateway_replying(status_code, body=None):
    def handler(request):
        if body is None:
            return httpx.Response(status_code, text="nope")
        return httpx.Response(status_code, json=body)

    return GatewayClient(
        api_key="k",
        url="https://gateway.test/v1/chat/completions",
        default_model="google/gemini-2.5-flash",
        transport=httpx.MockTransport(handler),
    )


# =============================================================================
# Gateway client
# =============================================================================

class TestGatewayClient:
    @pytest.mark.asyncio
    async def test_missing_key_raises_configuration_error(self):
        client = GatewayClient(api_key=None, url="https://gateway.test", default_model="m")
        with pytest.raises(ConfigurationError) as exc:
            await client.complete(MESSAGES)
        assert exc.value.message == "AI_GATEWAY_API_KEY not configured"
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error_cls,message", [
        (429, RateLimitedError, "Rate limit exceeded. Please try again later."),
        (402, CreditsExhaustedError, "AI credits exhausted. Please add more credits."),
        (503, UpstreamError, "AI gateway error: 503"),
    ])
    async def test_status_mapping(self, status, error_cls, message):
        client = _gateway_replying(status)
        with pytest.raises(error_cls) as exc:
            await client.complete(MESSAGES)
        assert exc.value.message == message
        assert exc.value.status_code == (status if status in (429, 402) else 500)
        await client.close()

    @pytest.mark.asyncio
    async def test_missing_content_becomes_empty_string(self):
        client = _gateway_replying(200, {"choices": []})
        result = await client.complete(MESSAGES)
        assert result.content == ""
        await client.close()


# =============================================================================
# Ollama conversion
# =============================================================================

class TestOllamaConversion:
    def test_parts_are_flattened(self):
        messages = [{
            "role": "user",
            "content": [
                {"type": "text", "text": "first"},
                {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
                {"type": "text", "text": "second"},
            ],
        }]
        assert to_ollama_messages(messages) == [{"role": "user", "content": "first\n\nsecond"}]

    def test_reply_becomes_chat_completion(self):
        data = {"message": {"role": "assistant", "content": "Namaste"}, "prompt_eval_count": 4, "eval_count": 6}
        envelope = to_chat_completion(data, "llama3.2")
        assert envelope["id"].startswith("ollama-")
        assert envelope["source"] == "ollama"
        assert envelope["choices"][0]["message"] == {"role": "assistant", "content": "Namaste"}
        assert envelope["usage"] == {"prompt_tokens": 4, "completion_tokens": 6, "total_tokens": 10}

    def test_missing_counts_default_to_zero(self):
        envelope = to_chat_completion({"message": {"content": "x"}}, "llama3.2")
        assert envelope["usage"]["total_tokens"] == 0

    def test_endpoint_resolution(self):
        assert resolve_endpoint("http://gpu-box:11434") == "http://gpu-box:11434"
        assert resolve_endpoint(None) == "http://localhost:11434"


# =============================================================================
# Reply parsing
# =============================================================================

class TestParsing:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert parse_fenced_json('```\n{"a": 2}\n```') == {"a": 2}

    def test_unfenced_json(self):
        assert parse_fenced_json('{"a": 3}') == {"a": 3}

    def test_not_json(self):
        assert parse_fenced_json("The FIR mentions theft.") is None

    def test_failure_marker(self):
        assert parse_fenced_json("The FIR mentions theft.", default=NOT_JSON) is NOT_JSON
        assert parse_fenced_json("null", default=NOT_JSON) is None

    def test_first_object_block(self):
        assert extract_json_object('Decision: {"allowed": true, "response": "Proceed"} thanks') == {
            "allowed": True,
            "response": "Proceed",
        }
        assert extract_json_object("no json here") is None


# =============================================================================
# /api/ai-router
# =============================================================================

class TestAIRouterEndpoint:
    def test_gateway_pass_through(self, client, register, gateway_stub):
        headers, _ = register()
        gateway_stub.content = "Section 420 covers cheating."
        response = client.post("/api/ai-router", json={"messages": MESSAGES, "temperature": 0.2}, headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "gateway"
        assert data["choices"][0]["message"]["content"] == "Section 420 covers cheating."

        sent = gateway_stub.requests[0]
        assert sent["model"] == "google/gemini-2.5-flash"
        assert sent["temperature"] == 0.2
        assert sent["max_tokens"] == 2048
        assert sent["stream"] is False

    def test_ollama_routing(self, client, register):
        from nyayasetu.api import app

        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "Local answer"}, "eval_count": 3})

        app.dependency_overrides[get_ollama_client] = lambda: OllamaClient(transport=httpx.MockTransport(handler))
        headers, _ = register()
        response = client.post(
            "/api/ai-router",
            json={
                "messages": [{"role": "user", "content": [{"type": "text", "text": "Hello"}]}],
                "useOllama": True,
                "ollamaEndpoint": "http://gpu-box:11434/",
                "max_tokens": 128,
            },
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "ollama"
        assert data["model"] == "llama3.2"
        assert data["choices"][0]["message"]["content"] == "Local answer"
        assert seen["url"] == "http://gpu-box:11434/api/chat"
        assert seen["payload"]["messages"] == [{"role": "user", "content": "Hello"}]
        assert seen["payload"]["stream"] is False
        assert seen["payload"]["options"] == {"temperature": 0.7, "num_predict": 128}

    def test_ollama_failure(self, client, register):
        from nyayasetu.api import app

        handler = lambda request: httpx.Response(500, text="model not loaded")  # noqa: E731
        app.dependency_overrides[get_ollama_client] = lambda: OllamaClient(transport=httpx.MockTransport(handler))
        headers, _ = register()
        response = client.post("/api/ai-router", json={"messages": MESSAGES, "useOllama": True}, headers=headers)

        assert response.status_code == 500
        assert response.json() == {"error": "Ollama error: 500 - model not loaded", "source": "error"}

    @pytest.mark.parametrize("status,message", [
        (429, "Rate limit exceeded. Please try again later."),
        (402, "AI credits exhausted. Please add more credits."),
    ])
    def test_upstream_status_passthrough(self, client, register, gateway_stub, status, message):
        headers, _ = register()
        gateway_stub.status_code = status
        response = client.post("/api/ai-router", json={"messages": MESSAGES}, headers=headers)
        assert response.status_code == status
        assert response.json() == {"error": message, "source": "error"}

    def test_missing_gateway_key(self, client, register, gateway_stub):
        from nyayasetu.api import app
        from nyayasetu.llm.gateway import get_gateway_client

        app.dependency_overrides[get_gateway_client] = lambda: gateway_stub.client(api_key=None)
        headers, _ = register()
        response = client.post("/api/ai-router", json={"messages": MESSAGES}, headers=headers)
        assert response.status_code == 500
        assert response.json()["error"] == "AI_GATEWAY_API_KEY not configured"
        assert gateway_stub.requests == []

    def test_streaming_is_rejected(self, client, register, gateway_stub):
        headers, _ = register()
        response = client.post("/api/ai-router", json={"messages": MESSAGES, "stream": True}, headers=headers)
        assert response.status_code == 400
        assert gateway_stub.requests == []
