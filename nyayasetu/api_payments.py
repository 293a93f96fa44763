"""
Payment API Endpoints
=====================

- POST /api/create-payment   - Wallet debit or local gateway order (auth)
- POST /api/payment-webhook  - Gateway callback (no user auth; HMAC when configured)
- POST /api/generate-invoice - Invoice for one of the caller's payments (auth)
- GET  /api/wallet           - Caller's balance
- GET  /api/wallet/transactions - Caller's wallet ledger, newest first (last 100)
- GET  /api/payments         - Caller's payments, newest first
- GET  /api/invoices         - Caller's invoices, newest first
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .auth import AuthContext, require_auth
from .config import get_settings
from .db.session import get_db
from .errors import ServiceError
from .invoices import generate_invoice, list_invoices, serialize_invoice
from .payments import (
    create_payment, handle_payment_webhook, verify_razorpay_signature, get_wallet_balance,
    list_payments, list_wallet_transactions, serialize_payment, serialize_wallet_transaction,
)
from .schemas import CreatePaymentRequest, GenerateInvoiceRequest, PaymentWebhookRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["payments"])


@router.post("/create-payment")
async def create_payment_endpoint(
    request: CreatePaymentRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return create_payment(
        db,
        auth,
        amount=request.amount,
        gateway=request.gateway.value,
        payment_type=request.type.value,
        promo_code=request.promo_code,
        hearing_session_id=request.hearing_session_id,
        case_id=request.case_id,
        metadata=request.metadata,
    )


@router.post("/payment-webhook")
async def payment_webhook(
    request: Request,
    x_gateway: Optional[str] = Header(None, alias="x-gateway"),
    x_razorpay_signature: Optional[str] = Header(None, alias="x-razorpay-signature"),
    db: Session = Depends(get_db),
):
    """
    Gateway callback. Razorpay callbacks must be signed when
    RAZORPAY_WEBHOOK_SECRET is configured.
    """
    gateway = (x_gateway or "razorpay").lower()
    raw_body = await request.body()

    secret = get_settings().razorpay_webhook_secret
    if gateway == "razorpay" and secret:
        if not verify_razorpay_signature(raw_body, x_razorpay_signature, secret):
            logger.warning("Rejected webhook with invalid Razorpay signature")
            raise ServiceError("Invalid webhook signature", status_code=401)

    try:
        body = PaymentWebhookRequest.model_validate(json.loads(raw_body or b"{}"))
    except (json.JSONDecodeError, ValidationError):
        raise ServiceError("Invalid request body", status_code=400)

    return handle_payment_webhook(db, body.model_dump(), gateway=gateway)


@router.post("/generate-invoice")
async def generate_invoice_endpoint(
    request: GenerateInvoiceRequest,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return generate_invoice(db, auth, request.payment_id, hearing_session_id=request.hearing_session_id)


@router.get("/wallet")
async def wallet_balance(
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return {"balance": get_wallet_balance(db, auth.user_id), "currency": get_settings().currency}


@router.get("/wallet/transactions")
async def wallet_transactions(
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return [serialize_wallet_transaction(t) for t in list_wallet_transactions(db, auth.user_id)]


@router.get("/payments")
async def payment_history(
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return [serialize_payment(p) for p in list_payments(db, auth.user_id)]


@router.get("/invoices")
async def invoice_history(
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return [serialize_invoice(i) for i in list_invoices(db, auth.user_id)]
