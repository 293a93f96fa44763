"""
Ollama Client
=============

Routes chat requests to a self-hosted Ollama server and reshapes the reply
into the chat-completions envelope the gateway returns, so callers can
switch backends without changing how they read the result.
"""

import time
import httpx
import logging
from typing import Optional, Dict, Any, List, AsyncGenerator

from ..config import get_settings
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"


def flatten_content(content: Any) -> str:
    """String content is kept; a parts list becomes its texts joined by newlines."""
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, dict):
            parts.append(part.get("text") or "")
        else:
            parts.append(getattr(part, "text", None) or "")
    return "\n".join(parts)


def to_ollama_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [{"role": m["role"], "content": flatten_content(m.get("content"))} for m in messages]


def build_ollama_payload(
    messages: List[Dict[str, Any]],
    model: str,
    temperature: float,
    max_tokens: int,
) -> Dict[str, Any]:
    return {
        "model": model,
        "messages": to_ollama_messages(messages),
        "stream": False,
        "options": {
            "temperature": temperature,
            "num_predict": max_tokens,
        },
    }


def to_chat_completion(data: Dict[str, Any], model: str) -> Dict[str, Any]:
    """Convert an Ollama /api/chat reply into a chat-completions envelope."""
    message = data.get("message") or {}
    prompt_tokens = data.get("prompt_eval_count") or 0
    completion_tokens = data.get("eval_count") or 0
    return {
        "id": f"ollama-{int(time.time() * 1000)}",
        "model": model,
        "choices": [{
            "index": 0,
            "message": {
                "role": "assistant",
                "content": message.get("content") or "",
            },
            "finish_reason": "stop",
        }],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        },
        "source": "ollama",
    }


def resolve_endpoint(requested: Optional[str]) -> str:
    """Request value, then OLLAMA_ENDPOINT setting, then localhost."""
    return requested or get_settings().ollama_endpoint or DEFAULT_OLLAMA_ENDPOINT


class OllamaClient:
    """Async client for Ollama's /api/chat"""

    def __init__(self, timeout: int = 60, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def chat(
        self,
        endpoint: str,
        messages: List[Dict[str, Any]],
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ) -> Dict[str, Any]:
        """
        Call ``<endpoint>/api/chat`` and return a chat-completions envelope.

        Raises:
            UpstreamError: non-2xx reply, as ``Ollama error: <status> - <body>``
        """
        url = f"{endpoint.rstrip('/')}/api/chat"
        logger.info(f"Routing to Ollama at: {endpoint}")

        client = await self._get_client()
        try:
            response = await client.post(
                url,
                json=build_ollama_payload(messages, model, temperature, max_tokens),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Ollama request failed: {e}")
            raise UpstreamError(f"Ollama request failed: {e}")

        if not response.is_success:
            logger.error(f"Ollama error: {response.status_code} {response.text[:200]}")
            raise UpstreamError(
                f"Ollama error: {response.status_code} - {response.text}",
                upstream_status=response.status_code,
            )

        return to_chat_completion(response.json(), model)


async def get_ollama_client() -> AsyncGenerator[OllamaClient, None]:
    """FastAPI dependency yielding an Ollama client for one request."""
    client = OllamaClient(timeout=get_settings().llm_timeout)
    try:
        yield client
    finally:
        await client.close()
