"""
Court Session API Endpoints
===========================

- POST  /api/court/sessions                          - Create (generates court code)
- GET   /api/court/sessions?case_id=&payment_status=
- PATCH /api/court/sessions/{session_id}             - Change status
- GET   /api/court/session/{code}                    - Look up by court code
- GET   /api/court/sessions/{session_id}/transcripts
- POST  /api/court/sessions/{session_id}/transcripts
- POST  /api/send-lawyer-otp
- POST  /api/verify-lawyer-otp
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .auth import AuthContext, require_auth
from .db.session import get_db
from .otp import send_lawyer_otp, verify_lawyer_otp
from .schemas import SessionCreateRequest, TranscriptAppendRequest, SendLawyerOTPRequest, VerifyLawyerOTPRequest
from .sessions import (
    create_session,
    list_sessions,
    get_session_by_code,
    get_session_for,
    update_session_status,
    append_transcript,
    list_transcript,
    serialize_session,
    serialize_transcript,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["court"])


class SessionStatusUpdate(BaseModel):
    status: str


@router.post("/court/sessions", status_code=201)
async def create_court_session(
    request: SessionCreateRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    session = create_session(db, auth, request.case_id, request.lawyer_type, request.total_fee)
    return serialize_session(session)


@router.get("/court/sessions")
async def list_court_sessions(
    case_id: Optional[str] = Query(default=None),
    payment_status: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return [serialize_session(s) for s in list_sessions(db, auth, case_id, payment_status)]


@router.patch("/court/sessions/{session_id}")
async def update_court_session(
    session_id: str,
    request: SessionStatusUpdate,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return serialize_session(update_session_status(db, auth, session_id, request.status))


@router.get("/court/session/{code}")
async def get_court_session_by_code(code: str, db: Session = Depends(get_db)):
    """Public lookup used by participants joining with a court code."""
    return serialize_session(get_session_by_code(db, code))


@router.get("/court/sessions/{session_id}/transcripts")
async def get_transcripts(
    session_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    session = get_session_for(db, auth, session_id)
    return [serialize_transcript(t) for t in list_transcript(db, session.id)]


@router.post("/court/sessions/{session_id}/transcripts", status_code=201)
async def add_transcript(
    session_id: str,
    request: TranscriptAppendRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    session = get_session_for(db, auth, session_id)
    entry = append_transcript(
        db,
        session,
        speaker_role=request.speaker_role,
        message=request.message,
        speaker_name=request.speaker_name,
        is_ai_generated=request.is_ai_generated,
    )
    return serialize_transcript(entry)


@router.post("/send-lawyer-otp")
async def send_lawyer_otp_endpoint(
    request: SendLawyerOTPRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return send_lawyer_otp(
        db,
        auth,
        request.session_id,
        lawyer_id=request.lawyer_id,
        lawyer_email=request.lawyer_email,
    )


@router.post("/verify-lawyer-otp")
async def verify_lawyer_otp_endpoint(
    request: VerifyLawyerOTPRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return verify_lawyer_otp(db, auth, request.session_id, request.otp)
