"""
Response hardening for the JSON API.

Every response gets nosniff / frame-deny headers. Auth and payment responses
carry tokens or wallet data, so they are also marked uncacheable.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}

NO_STORE_PREFIXES = ("/api/auth", "/api/wallet", "/api/create-payment", "/api/generate-invoice")

# Swagger UI pulls its own scripts
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        path = request.url.path

        for name, value in BASE_HEADERS.items():
            response.headers.setdefault(name, value)

        if path.startswith(NO_STORE_PREFIXES):
            response.headers["Cache-Control"] = "no-store"
        if not path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response
