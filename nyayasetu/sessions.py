"""
Court Sessions & Hearing Transcripts
====================================

A court session is one hearing of a case, joined by its 8-character court
code. Its transcript is an append-only log numbered 1..n in append order.
"""

import secrets
import string
import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import AuthContext
from .db.models import Case, CourtSession, HearingTranscript, SessionStatus, LawyerType
from .errors import ServiceError
from .notifications import notify_session_status_change

logger = logging.getLogger(__name__)

COURT_CODE_ALPHABET = string.ascii_uppercase + string.digits
COURT_CODE_LENGTH = 8
MAX_APPEND_ATTEMPTS = 3


def generate_court_code() -> str:
    return "".join(secrets.choice(COURT_CODE_ALPHABET) for _ in range(COURT_CODE_LENGTH))


def _owned_case(db: Session, auth: AuthContext, case_id: str) -> Case:
    case = db.query(Case).filter(Case.id == case_id).first()
    if not case or not auth.owns(case.user_id):
        raise ServiceError("Case not found", status_code=404)
    return case


def get_session_for(db: Session, auth: AuthContext, session_id: str) -> CourtSession:
    session = db.query(CourtSession).filter(CourtSession.id == session_id).first()
    if not session:
        raise ServiceError("Session not found", status_code=404)
    _owned_case(db, auth, session.case_id)
    return session


def create_session(
    db: Session,
    auth: AuthContext,
    case_id: str,
    lawyer_type: str = "ai_lawyer",
    total_fee: Optional[float] = None,
) -> CourtSession:
    _owned_case(db, auth, case_id)
    try:
        lawyer = LawyerType(lawyer_type)
    except ValueError:
        raise ServiceError(f"Invalid lawyer type: {lawyer_type}", status_code=400)

    code = generate_court_code()
    while db.query(CourtSession.id).filter(CourtSession.court_code == code).first():
        code = generate_court_code()

    session = CourtSession(
        case_id=case_id,
        court_code=code,
        status=SessionStatus.SCHEDULED,
        lawyer_type=lawyer,
        total_fee=total_fee,
        created_by=auth.user_id,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info(f"Created court session {session.id} code={code} for case {case_id}")
    return session


def list_sessions(
    db: Session,
    auth: AuthContext,
    case_id: Optional[str] = None,
    payment_status: Optional[str] = None,
) -> List[CourtSession]:
    query = db.query(CourtSession)
    if not auth.is_admin:
        query = query.join(Case, Case.id == CourtSession.case_id).filter(Case.user_id == auth.user_id)
    if case_id:
        query = query.filter(CourtSession.case_id == case_id)
    if payment_status:
        query = query.filter(CourtSession.payment_status == payment_status)
    return query.order_by(CourtSession.created_at.desc()).all()


def get_session_by_code(db: Session, code: str) -> CourtSession:
    session = db.query(CourtSession).filter(CourtSession.court_code == code.upper()).first()
    if not session:
        raise ServiceError("Session not found", status_code=404)
    return session


def update_session_status(db: Session, auth: AuthContext, session_id: str, status: str) -> CourtSession:
    session = get_session_for(db, auth, session_id)
    try:
        new_status = SessionStatus(status)
    except ValueError:
        raise ServiceError(f"Invalid session status: {status}", status_code=400)

    if session.status != new_status:
        session.status = new_status
        case = db.query(Case).filter(Case.id == session.case_id).first()
        notify_session_status_change(db, case.user_id, session.id, new_status.value)
    db.commit()
    db.refresh(session)
    return session


def append_transcript(
    db: Session,
    session: CourtSession,
    speaker_role: str,
    message: str,
    speaker_name: Optional[str] = None,
    is_ai_generated: bool = False,
) -> HearingTranscript:
    """
    Append one entry with the next sequence number.

    The (session_id, sequence_number) unique constraint rejects a concurrent
    writer that computed the same number; that writer retries.
    """
    for attempt in range(MAX_APPEND_ATTEMPTS):
        current = (
            db.query(func.max(HearingTranscript.sequence_number))
            .filter(HearingTranscript.session_id == session.id)
            .scalar()
        )
        entry = HearingTranscript(
            session_id=session.id,
            speaker_role=speaker_role,
            speaker_name=speaker_name,
            message=message,
            is_ai_generated=is_ai_generated,
            sequence_number=(current or 0) + 1,
        )
        db.add(entry)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Transcript sequence clash on session {session.id} (attempt {attempt + 1})")
            continue
        db.refresh(entry)
        return entry

    raise ServiceError("Could not append transcript entry, please retry", status_code=409)


def list_transcript(db: Session, session_id: str) -> List[HearingTranscript]:
    return (
        db.query(HearingTranscript)
        .filter(HearingTranscript.session_id == session_id)
        .order_by(HearingTranscript.sequence_number.asc())
        .all()
    )


def serialize_session(s: CourtSession) -> Dict[str, Any]:
    return {
        "id": s.id,
        "case_id": s.case_id,
        "court_code": s.court_code,
        "status": s.status.value,
        "lawyer_type": s.lawyer_type.value,
        "actual_lawyer_id": s.actual_lawyer_id,
        "actual_lawyer_email": s.actual_lawyer_email,
        "actual_lawyer_verified_at": s.actual_lawyer_verified_at.isoformat() if s.actual_lawyer_verified_at else None,
        "total_fee": s.total_fee,
        "payment_status": s.payment_status,
        "created_by": s.created_by,
        "created_at": s.created_at.isoformat() if s.created_at else None,
    }


def serialize_transcript(t: HearingTranscript) -> Dict[str, Any]:
    return {
        "id": t.id,
        "session_id": t.session_id,
        "speaker_name": t.speaker_name,
        "speaker_role": t.speaker_role,
        "message": t.message,
        "is_ai_generated": t.is_ai_generated,
        "sequence_number": t.sequence_number,
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }
