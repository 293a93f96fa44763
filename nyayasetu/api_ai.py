"""
AI Endpoints
============

FastAPI router for every model-backed feature:

- POST /api/ai-router         - Gateway / Ollama pass-through
- POST /api/case-intake-chat  - Guided case filing chat
- POST /api/case-assistant    - Procedural analysis of a case
- POST /api/ocr-document      - OCR + legal field extraction
- POST /api/text-to-speech    - Courtroom voices
- POST /api/court-chat        - Courtroom persona reply
- POST /api/ai-judge          - Presiding judge actions
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .auth import AuthContext, require_auth
from .case_assistant import CaseAssistant
from .config import get_settings
from .courtroom import AIJudge, court_chat
from .db.models import Evidence, Case
from .db.session import get_db
from .errors import ServiceError
from .intake import run_intake_chat
from .llm.gateway import GatewayClient, get_gateway_client
from .llm.ollama import OllamaClient, get_ollama_client, resolve_endpoint
from .ocr import analyze_document
from .schemas import (
    AIRouterRequest,
    CaseIntakeRequest,
    CaseAssistantRequest,
    OCRRequest,
    TextToSpeechRequest,
    CourtChatRequest,
    AIJudgeRequest,
)
from .tts import ElevenLabsClient, get_tts_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])


def _dump_messages(messages) -> list:
    return [m.model_dump(exclude_none=True) for m in messages]


@router.post("/ai-router")
async def ai_router(
    request: AIRouterRequest,
    auth: AuthContext = Depends(require_auth),
    gateway: GatewayClient = Depends(get_gateway_client),
    ollama: OllamaClient = Depends(get_ollama_client),
) -> Dict[str, Any]:
    """
    Route a chat-completions request to the hosted gateway (default) or to
    an Ollama server (``useOllama: true``). Replies always use the
    chat-completions shape, tagged with ``source``.
    """
    model = request.ollama_model if request.use_ollama else request.model
    logger.info(f"AI Router: useOllama={request.use_ollama}, model={model}")

    try:
        if request.stream:
            raise ServiceError("Streaming responses are not supported", status_code=400)

        messages = _dump_messages(request.messages)

        if request.use_ollama:
            return await ollama.chat(
                resolve_endpoint(request.ollama_endpoint),
                messages,
                model=request.ollama_model,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )

        data = await gateway.chat_completion({
            "model": request.model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": False,
        })
        data["source"] = "gateway"
        return data
    except ServiceError as e:
        e.extra.setdefault("source", "error")
        raise


@router.post("/case-intake-chat")
async def case_intake_chat(
    request: CaseIntakeRequest,
    auth: AuthContext = Depends(require_auth),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    reply = await run_intake_chat(
        gateway,
        _dump_messages(request.messages),
        request.step,
        request.case_context,
    )
    return {"reply": reply}


@router.post("/case-assistant")
async def case_assistant(
    request: CaseAssistantRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    assistant = CaseAssistant(db, gateway, model=get_settings().case_assistant_model)
    answer = await assistant.ask(auth, request.case_id, request.query, mode=request.mode)
    return answer.to_dict()


@router.post("/ocr-document")
async def ocr_document(
    request: OCRRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    """
    OCR an uploaded FIR/chargesheet image or PDF.

    With ``evidenceId``, the summary is saved as that evidence's AI analysis.
    """
    evidence = None
    if request.evidence_id:
        evidence = db.query(Evidence).filter(Evidence.id == request.evidence_id).first()
        case = db.query(Case).filter(Case.id == evidence.case_id).first() if evidence else None
        if not evidence or not case or not auth.owns(case.user_id):
            raise ServiceError("Evidence not found", status_code=404)

    result = await analyze_document(gateway, request.image_base64, request.mime_type, request.file_name)

    if evidence is not None and isinstance(result, dict):
        evidence.ai_analysis = result.get("summary") or result.get("extracted_text")
        db.commit()
        logger.info(f"Stored OCR analysis on evidence {evidence.id}")

    return result


@router.post("/text-to-speech")
async def text_to_speech(
    request: TextToSpeechRequest,
    auth: AuthContext = Depends(require_auth),
    tts: ElevenLabsClient = Depends(get_tts_client),
):
    audio = await tts.synthesize_base64(
        request.text,
        speaker=request.speaker,
        language=request.language,
        speech_rate=request.speech_rate,
    )
    return {"audioContent": audio}


@router.post("/court-chat")
async def court_chat_endpoint(
    request: CourtChatRequest,
    auth: AuthContext = Depends(require_auth),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    return await court_chat(
        gateway,
        request.prompt,
        role=request.role,
        language=request.language,
        case_context=request.case_context,
    )


@router.post("/ai-judge")
async def ai_judge(
    request: AIJudgeRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    gateway: GatewayClient = Depends(get_gateway_client),
):
    return await AIJudge(db, gateway).run(auth, request)
