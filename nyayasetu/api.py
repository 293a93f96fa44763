"""
eNyayaSetu API
==============

FastAPI application for the eNyayaSetu virtual courtroom backend.

Routers:
- /api/auth/*           - Sign-up, sign-in, current user
- /api/* (ai)           - AI router, intake chat, case assistant, OCR, TTS, court chat, AI judge
- /api/* (cases)        - Duplicate check, cases, evidence, milestones
- /api/* (court)        - Court sessions, transcripts, lawyer OTP
- /api/* (payments)     - Create payment, webhook, invoices, wallet
- /api/notifications/*  - In-app notifications
- GET /health           - Health check

Every error is returned as ``{"error": "<message>"}`` with a matching status.

Run with:
    uvicorn nyayasetu.api:app --host 0.0.0.0 --port 8000
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .db.session import init_db
from .errors import ServiceError
from .middleware.security import SecurityHeadersMiddleware
from .schemas import HealthResponse
from .api_ai import router as ai_router
from .api_auth import router as auth_router
from .api_cases import router as cases_router
from .api_court import router as court_router
from .api_notifications import router as notifications_router
from .api_payments import router as payments_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="eNyayaSetu API",
    description="Virtual Indian courtroom: case filing, AI hearings, payments",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Browser clients call from any origin with a bearer token, never cookies
CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=CORS_ALLOW_HEADERS,
)
app.add_middleware(SecurityHeadersMiddleware)

app.include_router(auth_router)
app.include_router(ai_router)
app.include_router(cases_router)
app.include_router(court_router)
app.include_router(payments_router)
app.include_router(notifications_router)


# =============================================================================
# Lifecycle
# =============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    settings = get_settings()
    logger.info(f"Starting eNyayaSetu API v{settings.service_version}")
    for warning in settings.validate_config():
        logger.warning(warning)
    init_db()


@app.get("/health", response_model=HealthResponse, tags=["Health"])
@app.get("/api/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=settings.service_version,
        ai_gateway_configured=bool(settings.ai_gateway_api_key),
        tts_configured=bool(settings.elevenlabs_api_key),
    )


# =============================================================================
# Error envelope
# =============================================================================

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler - always return valid JSON"""
    logger.exception(f"Unhandled exception on {request.url.path}")
    return JSONResponse(status_code=500, content={"error": str(exc) or "Unknown error"})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
