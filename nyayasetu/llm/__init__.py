"""
LLM Module
==========

Clients for the two chat backends:
- Hosted AI gateway (OpenAI-compatible chat completions, default)
- Ollama (self-hosted, selected per request with ``useOllama``)

Environment Variables:
- AI_GATEWAY_API_KEY: Required for the gateway
- AI_GATEWAY_URL: Gateway chat-completions URL
- OLLAMA_ENDPOINT: Fallback Ollama server (default: http://localhost:11434)

Usage:
    from nyayasetu.llm import get_gateway_client

    @router.post("/x")
    async def handler(gateway: GatewayClient = Depends(get_gateway_client)):
        result = await gateway.complete(messages)
"""

from .gateway import GatewayClient, LLMCallResult, get_gateway_client, raise_for_gateway_status
from .ollama import OllamaClient, get_ollama_client, to_ollama_messages, to_chat_completion, resolve_endpoint
from .parsing import NOT_JSON, parse_fenced_json, extract_json_object, strip_code_fence, safe_log_content

__all__ = [
    # Gateway
    "GatewayClient",
    "LLMCallResult",
    "get_gateway_client",
    "raise_for_gateway_status",
    # Ollama
    "OllamaClient",
    "get_ollama_client",
    "to_ollama_messages",
    "to_chat_completion",
    "resolve_endpoint",
    # Parsing
    "NOT_JSON",
    "parse_fenced_json",
    "extract_json_object",
    "strip_code_fence",
    "safe_log_content",
]
