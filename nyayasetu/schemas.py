"""
Pydantic Schemas for eNyayaSetu Backend
=======================================

Request bodies for the HTTP handlers. The browser client sends camelCase
keys for some fields (``useOllama``, ``caseContext``, ``imageBase64``...),
so those fields carry aliases; snake_case names are accepted as well.
"""

from typing import List, Optional, Dict, Any, Union
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class IntakeStep(str, Enum):
    """Case intake conversation step, chosen by the caller"""
    INITIAL = "initial"
    DOCUMENT_UPLOADED = "document_uploaded"
    RELATION_CHECK = "relation_check"
    DETAILS = "details"
    STATUS_CHECK = "status_check"
    PROCESSING = "processing"
    COMPLETE = "complete"


class Language(str, Enum):
    EN = "en"
    HI = "hi"
    HINGLISH = "hinglish"


class SpeakerRole(str, Enum):
    """Courtroom speaker roles used for voices and chat personas"""
    JUDGE = "judge"
    PROSECUTOR = "prosecutor"
    LAWYER = "lawyer"
    ACCUSED = "accused"
    CLERK = "clerk"
    AI = "ai"


class JudgeAction(str, Enum):
    START_SESSION = "start_session"
    RESPOND_TO_SPEECH = "respond_to_speech"
    EVALUATE_HAND_RAISE = "evaluate_hand_raise"
    EVALUATE_DATE_EXTENSION = "evaluate_date_extension"
    ANALYZE_EVIDENCE = "analyze_evidence"
    MAKE_DECISION = "make_decision"
    ADJOURN_SESSION = "adjourn_session"
    EVALUATE_WITNESS_REQUEST = "evaluate_witness_request"


class GatewayName(str, Enum):
    RAZORPAY = "razorpay"
    PHONEPE = "phonepe"
    WALLET = "wallet"


class PaymentKind(str, Enum):
    WALLET_TOPUP = "wallet_topup"
    HEARING_PAYMENT = "hearing_payment"
    ADDON_PAYMENT = "addon_payment"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# CHAT MESSAGES
# =============================================================================

class ContentPart(BaseModel):
    """One part of a multimodal message (text or image_url)"""
    type: str
    text: Optional[str] = None
    image_url: Optional[Dict[str, Any]] = None


class ChatMessage(BaseModel):
    role: str
    content: Union[str, List[ContentPart]]


# =============================================================================
# AI ENDPOINTS
# =============================================================================

class AIRouterRequest(_CamelModel):
    """Body of POST /api/ai-router"""
    messages: List[ChatMessage] = Field(..., min_length=1)
    model: str = "google/gemini-2.5-flash"
    temperature: float = 0.7
    max_tokens: int = 2048
    stream: bool = False
    use_ollama: bool = Field(False, alias="useOllama")
    ollama_endpoint: Optional[str] = Field(None, alias="ollamaEndpoint")
    ollama_model: str = Field("llama3.2", alias="ollamaModel")


class CaseIntakeRequest(_CamelModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    case_context: Optional[Dict[str, Any]] = Field(None, alias="caseContext")
    step: IntakeStep = IntakeStep.INITIAL


class CaseAssistantRequest(_CamelModel):
    query: str = Field(..., min_length=1)
    case_id: str = Field(..., alias="caseId")
    mode: str = "general"


class OCRRequest(_CamelModel):
    image_base64: str = Field(..., alias="imageBase64", min_length=1)
    mime_type: str = Field(..., alias="mimeType")
    file_name: Optional[str] = Field(None, alias="fileName")
    evidence_id: Optional[str] = Field(None, alias="evidenceId")


class TextToSpeechRequest(_CamelModel):
    text: str = Field(..., min_length=1)
    speaker: str = "judge"
    language: str = "en"
    speech_rate: float = Field(1.0, alias="speechRate")


class CourtChatRequest(_CamelModel):
    prompt: str = Field(..., min_length=1)
    case_context: Optional[str] = Field(None, alias="caseContext")
    language: str = "en"
    # Unknown roles fall back to a generic legal-expert persona
    role: str = SpeakerRole.JUDGE.value


class HandRaise(_CamelModel):
    participant_name: Optional[str] = Field(None, alias="participantName")
    role: Optional[str] = None
    reason: Optional[str] = None


class DateRequest(_CamelModel):
    requester_name: Optional[str] = Field(None, alias="requesterName")
    role: Optional[str] = None
    reason: Optional[str] = None
    requested_date: Optional[str] = Field(None, alias="requestedDate")


class EvidenceSubmission(_CamelModel):
    submitter: Optional[str] = None
    file_name: Optional[str] = Field(None, alias="fileName")
    file_type: Optional[str] = Field(None, alias="fileType")
    ocr_text: Optional[str] = Field(None, alias="ocrText")


class WitnessRequest(_CamelModel):
    requester_name: Optional[str] = Field(None, alias="requesterName")
    role: Optional[str] = None
    witness_name: Optional[str] = Field(None, alias="witnessName")
    description: Optional[str] = None
    relevance: Optional[str] = None


class AIJudgeRequest(_CamelModel):
    """
    Body of POST /api/ai-judge.

    ``action`` is validated by the handler so an unknown action yields the
    plain ``Invalid action`` error rather than a validation report.
    ``caseContext`` may be a string or any JSON value.
    """
    action: Optional[str] = None
    case_context: Optional[Any] = Field(None, alias="caseContext")
    current_speaker: Optional[str] = Field(None, alias="currentSpeaker")
    message: Optional[str] = None
    hand_raise: Optional[HandRaise] = Field(None, alias="handRaise")
    date_request: Optional[DateRequest] = Field(None, alias="dateRequest")
    evidence: Optional[EvidenceSubmission] = None
    witness_request: Optional[WitnessRequest] = Field(None, alias="witnessRequest")
    language: str = "en"
    # When set, evaluate_* decisions are also delivered as notifications
    session_id: Optional[str] = Field(None, alias="sessionId")


# =============================================================================
# CASES
# =============================================================================

class PartyNames(BaseModel):
    complainant: Optional[str] = None
    accused: Optional[str] = None


class DuplicateCheckRequest(_CamelModel):
    case_number: Optional[str] = Field(None, alias="caseNumber")
    parties: Optional[PartyNames] = None


class CaseCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    case_number: Optional[str] = Field(None, max_length=100)
    plaintiff: Optional[str] = Field(None, max_length=255)
    defendant: Optional[str] = Field(None, max_length=255)
    category: str = "Custom Case"
    user_role: Optional[str] = None
    state: Optional[str] = None
    court_level: Optional[str] = None


class CaseUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    case_number: Optional[str] = Field(None, max_length=100)
    plaintiff: Optional[str] = None
    defendant: Optional[str] = None
    category: Optional[str] = None
    status: Optional[str] = None
    next_hearing_date: Optional[str] = None
    verdict: Optional[str] = None
    state: Optional[str] = None
    court_level: Optional[str] = None


class MilestoneRequest(BaseModel):
    milestone_name: str = Field(..., min_length=1)
    status: bool = False


# =============================================================================
# COURT SESSIONS
# =============================================================================

class SessionCreateRequest(BaseModel):
    case_id: str
    lawyer_type: str = "ai_lawyer"
    total_fee: Optional[float] = None


class TranscriptAppendRequest(BaseModel):
    speaker_role: str
    message: str = Field(..., min_length=1)
    speaker_name: Optional[str] = None
    is_ai_generated: bool = False


class SendLawyerOTPRequest(BaseModel):
    session_id: Optional[str] = None
    lawyer_id: Optional[str] = None
    lawyer_email: Optional[EmailStr] = None


class VerifyLawyerOTPRequest(BaseModel):
    session_id: str
    otp: str = Field(..., min_length=6, max_length=6)


# =============================================================================
# PAYMENTS
# =============================================================================

class PaymentWebhookRequest(BaseModel):
    """Gateway callback body. Gateways send numeric ids and ``null`` metadata."""
    payment_id: Optional[Union[str, int]] = None
    order_id: Optional[Union[str, int]] = None
    status: Optional[str] = None
    amount: Optional[float] = None
    user_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    error_description: Optional[str] = None

    @field_validator("payment_id", "order_id")
    @classmethod
    def _ids_as_text(cls, value):
        return str(value) if value is not None else None


class CreatePaymentRequest(BaseModel):
    amount: float = Field(..., ge=1)
    gateway: GatewayName
    type: PaymentKind
    hearing_session_id: Optional[str] = None
    case_id: Optional[str] = None
    promo_code: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class GenerateInvoiceRequest(BaseModel):
    payment_id: str
    hearing_session_id: Optional[str] = None
    case_id: Optional[str] = None


# =============================================================================
# AUTH
# =============================================================================

class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    display_name: Optional[str] = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    ai_gateway_configured: bool
    tts_configured: bool
