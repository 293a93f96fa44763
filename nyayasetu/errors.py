"""
Shared error types.

Every handler error ends up as a JSON body of the form ``{"error": message}``;
the exception handlers registered in ``nyayasetu.api`` do the conversion.
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for errors that map to an HTTP status and an error envelope."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = dict(extra or {})

    def to_payload(self) -> Dict[str, Any]:
        payload = {"error": self.message}
        payload.update(self.extra)
        return payload


class ConfigurationError(ServiceError):
    """A required API key or endpoint is not configured."""


class UpstreamError(ServiceError):
    """An external API (AI gateway, Ollama, ElevenLabs) call failed."""

    def __init__(self, message: str, status_code: int = 500, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.upstream_status = upstream_status


class RateLimitedError(UpstreamError):
    """Upstream answered 429."""

    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, status_code=429, upstream_status=429)


class CreditsExhaustedError(UpstreamError):
    """Upstream answered 402."""

    def __init__(self, message: str = "AI credits exhausted. Please add more credits."):
        super().__init__(message, status_code=402, upstream_status=402)
