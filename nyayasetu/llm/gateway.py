"""
AI Gateway Client
=================

Async client for the hosted OpenAI-compatible chat-completions gateway.
Every AI feature (chat, OCR, case analysis, judge) goes through here.

Status mapping:
- 429 -> RateLimitedError
- 402 -> CreditsExhaustedError
- other non-2xx -> UpstreamError("AI gateway error: <status>")
"""

import httpx
import logging
from typing import Optional, Dict, Any, List, AsyncGenerator
from dataclasses import dataclass

from ..config import get_settings
from ..errors import ConfigurationError, UpstreamError, RateLimitedError, CreditsExhaustedError

logger = logging.getLogger(__name__)


@dataclass
class LLMCallResult:
    """Result from a chat-completions call"""
    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    raw_response: Optional[Dict] = None


def raise_for_gateway_status(response: httpx.Response, label: str = "AI gateway") -> None:
    """Translate a non-2xx upstream reply into the matching ServiceError."""
    if response.is_success:
        return

    logger.error(f"{label} error: {response.status_code} - {response.text[:200]}")
    if response.status_code == 429:
        raise RateLimitedError()
    if response.status_code == 402:
        raise CreditsExhaustedError()
    raise UpstreamError(f"{label} error: {response.status_code}", upstream_status=response.status_code)


class GatewayClient:
    """
    Thin async wrapper around the gateway.

    Usage:
        client = GatewayClient.from_settings()
        result = await client.complete([{"role": "user", "content": "Hi"}])
        await client.close()
    """

    def __init__(
        self,
        api_key: Optional[str],
        url: str,
        default_model: str,
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.url = url
        self.default_model = default_model
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "GatewayClient":
        settings = get_settings()
        return cls(
            api_key=settings.ai_gateway_api_key,
            url=settings.ai_gateway_url,
            default_model=settings.default_model,
            timeout=settings.llm_timeout,
            transport=transport,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def chat_completion(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a chat-completions payload and return the decoded JSON reply.

        Raises:
            ConfigurationError: no gateway key
            RateLimitedError / CreditsExhaustedError / UpstreamError
        """
        if not self.api_key:
            raise ConfigurationError("AI_GATEWAY_API_KEY not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        client = await self._get_client()
        try:
            response = await client.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"AI gateway request failed: {e}")
            raise UpstreamError(str(e) or "AI gateway request failed")

        raise_for_gateway_status(response)
        return response.json()

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        **options: Any,
    ) -> LLMCallResult:
        """Send messages and pull the first choice's content (empty string if absent)."""
        model = model or self.default_model
        payload: Dict[str, Any] = {"model": model, "messages": messages}
        payload.update({k: v for k, v in options.items() if v is not None})

        data = await self.chat_completion(payload)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.warning(f"AI gateway response missing content: {e}")
            content = ""

        usage = data.get("usage") or {}
        return LLMCallResult(
            content=content or "",
            model=model,
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            raw_response=data,
        )


async def get_gateway_client() -> AsyncGenerator[GatewayClient, None]:
    """FastAPI dependency yielding a gateway client for one request."""
    client = GatewayClient.from_settings()
    try:
        yield client
    finally:
        await client.close()
