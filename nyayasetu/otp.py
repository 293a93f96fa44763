"""
Actual-Lawyer OTP
=================

When a hearing uses a real lawyer instead of the AI lawyer, the lawyer must
confirm with a one-time code sent to their email before the hearing starts.

- 6 digits, valid for 15 minutes
- Only a SHA-256 hash is stored on the session
- The code is delivered by email and never returned to the caller
"""

import hmac
import secrets
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, Tuple

from sqlalchemy.orm import Session

from .auth import AuthContext
from .config import get_settings
from .db.models import CourtSession, Case, LawyerType
from .email_utils import send_lawyer_otp_email
from .errors import ServiceError
from .notifications import notify_verification_status

logger = logging.getLogger(__name__)


def generate_otp(now: Optional[datetime] = None, ttl_minutes: Optional[int] = None) -> Tuple[str, datetime]:
    """Returns (6-digit code, expiry)."""
    ttl = ttl_minutes if ttl_minutes is not None else get_settings().lawyer_otp_ttl_minutes
    code = str(secrets.randbelow(900000) + 100000)
    issued_at = now or datetime.utcnow()
    return code, issued_at + timedelta(minutes=ttl)


def hash_otp(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def _load_owned_session(db: Session, auth: AuthContext, session_id: str) -> Tuple[CourtSession, Case]:
    session = db.query(CourtSession).filter(CourtSession.id == session_id).first()
    if not session:
        raise ServiceError("Session not found", status_code=404)

    case = db.query(Case).filter(Case.id == session.case_id).first()
    if not case or case.user_id != auth.user_id:
        raise ServiceError("Unauthorized", status_code=403)
    return session, case


def send_lawyer_otp(
    db: Session,
    auth: AuthContext,
    session_id: Optional[str],
    lawyer_id: Optional[str] = None,
    lawyer_email: Optional[str] = None,
) -> Dict[str, Any]:
    if not session_id:
        raise ServiceError("Session ID required", status_code=400)

    session, case = _load_owned_session(db, auth, session_id)
    if session.lawyer_type != LawyerType.ACTUAL_LAWYER:
        raise ServiceError("Not an Actual Lawyer case", status_code=400)

    code, expires_at = generate_otp()
    session.actual_lawyer_otp_hash = hash_otp(code)
    session.actual_lawyer_otp_expires_at = expires_at
    if lawyer_id:
        session.actual_lawyer_id = lawyer_id
    if lawyer_email:
        session.actual_lawyer_email = lawyer_email
    db.commit()

    email_to = lawyer_email or session.actual_lawyer_email
    if email_to:
        if not send_lawyer_otp_email(email_to, code, case.title, session.court_code):
            logger.error(f"Could not deliver lawyer OTP for session {session.id}")
    else:
        logger.warning(f"No lawyer email on session {session.id}; OTP stored but not delivered")

    return {
        "success": True,
        "message": "OTP sent to lawyer email",
        "otp_expires_at": expires_at.isoformat(),
    }


def verify_lawyer_otp(db: Session, auth: AuthContext, session_id: str, otp: str) -> Dict[str, Any]:
    session, case = _load_owned_session(db, auth, session_id)

    if not session.actual_lawyer_otp_hash or not session.actual_lawyer_otp_expires_at:
        raise ServiceError("No OTP pending for this session", status_code=400)
    if datetime.utcnow() > session.actual_lawyer_otp_expires_at:
        raise ServiceError("OTP expired", status_code=400)
    if not hmac.compare_digest(session.actual_lawyer_otp_hash, hash_otp(otp)):
        raise ServiceError("Invalid OTP", status_code=400)

    session.actual_lawyer_otp_hash = None
    session.actual_lawyer_otp_expires_at = None
    session.actual_lawyer_verified_at = datetime.utcnow()
    notify_verification_status(
        db, case.user_id, case.id, approved=True,
        notes=f"Advocate confirmed for court {session.court_code}.",
    )
    db.commit()

    logger.info(f"Lawyer verified for session {session.id}")
    return {"success": True, "verified_at": session.actual_lawyer_verified_at.isoformat()}
