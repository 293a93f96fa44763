"""
Invoice generation for completed payments.

Invoice numbers are ``INV-<YYYYMM>-<5-digit sequence>``, with the sequence
restarting each month.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .auth import AuthContext
from .config import get_settings
from .db.models import Invoice, Payment, CourtSession, Case
from .errors import ServiceError

logger = logging.getLogger(__name__)

MAX_NUMBERING_ATTEMPTS = 3


def next_invoice_number(db: Session, now: Optional[datetime] = None) -> str:
    prefix = f"INV-{(now or datetime.utcnow()).strftime('%Y%m')}-"
    count = db.query(Invoice).filter(Invoice.invoice_number.like(f"{prefix}%")).count()
    return f"{prefix}{count + 1:05d}"


def build_invoice_data(payment: Payment, session: Optional[CourtSession], case_title: Optional[str]) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "items": [],
        "subtotal": payment.amount,
        "tax": 0,
        "discount": 0,
        "total": payment.amount,
    }
    if session is not None:
        fee = session.total_fee or get_settings().default_session_fee
        data["items"].append({
            "description": f"Court Hearing Session - {case_title or 'Case'}",
            "quantity": 1,
            "rate": fee,
            "amount": fee,
        })
    return data


def _owned_session(db: Session, auth: AuthContext, session_id: str):
    """(session, case title) for a session on one of the caller's cases, else (None, None)."""
    row = (
        db.query(CourtSession, Case.title)
        .join(Case, Case.id == CourtSession.case_id)
        .filter(CourtSession.id == session_id, Case.user_id == auth.user_id)
        .first()
    )
    if not row:
        logger.warning(f"Invoice for user {auth.user_id} skipped hearing session {session_id}: not theirs")
        return None, None
    return row


def generate_invoice(
    db: Session,
    auth: AuthContext,
    payment_id: str,
    hearing_session_id: Optional[str] = None,
) -> Dict[str, Any]:
    payment = db.query(Payment).filter(
        Payment.id == payment_id,
        Payment.user_id == auth.user_id,
    ).first()
    if not payment:
        raise ServiceError("Payment not found", status_code=404)

    session, case_title = None, None
    if hearing_session_id:
        session, case_title = _owned_session(db, auth, hearing_session_id)

    invoice_data = build_invoice_data(payment, session, case_title)

    # A concurrent writer may take the same number; the unique constraint rejects it
    for attempt in range(MAX_NUMBERING_ATTEMPTS):
        invoice = Invoice(
            invoice_number=next_invoice_number(db),
            user_id=auth.user_id,
            payment_id=payment.id,
            amount=payment.amount,
            total_amount=payment.amount,
            status="generated",
            invoice_data=invoice_data,
        )
        db.add(invoice)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Invoice number clash for payment {payment.id} (attempt {attempt + 1})")
            continue
        db.refresh(invoice)
        break
    else:
        raise ServiceError("Could not allocate an invoice number, please retry", status_code=409)

    logger.info(f"Generated invoice {invoice.invoice_number} for payment {payment.id}")
    return {
        "invoice_id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "invoice_data": invoice_data,
    }


def list_invoices(db: Session, user_id: str) -> List[Invoice]:
    return (
        db.query(Invoice)
        .filter(Invoice.user_id == user_id)
        .order_by(Invoice.created_at.desc())
        .all()
    )


def serialize_invoice(invoice: Invoice) -> Dict[str, Any]:
    return {
        "id": invoice.id,
        "invoice_number": invoice.invoice_number,
        "payment_id": invoice.payment_id,
        "amount": invoice.amount,
        "total_amount": invoice.total_amount,
        "status": invoice.status,
        "invoice_data": invoice.invoice_data,
        "created_at": invoice.created_at.isoformat() if invoice.created_at else None,
    }
