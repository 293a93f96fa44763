"""
Payments & Wallet
=================

- Payment creation (wallet debit, or a local order for Razorpay/PhonePe)
- Promo code discounts
- Gateway webhook handling (status update + wallet top-up credit)
- Wallet balance updates with a signed transaction ledger

Orders are created locally; no gateway order API is called.
"""

import hmac
import time
import hashlib
import logging
from datetime import datetime
from typing import Optional, Dict, Any, Tuple, List

from sqlalchemy.orm import Session

from .auth import AuthContext
from .db.models import (
    Payment, PaymentStatus, PaymentGateway, PaymentType,
    UserWallet, WalletTransaction, PromoCode, PromoCodeUsage, DiscountType,
)
from .errors import ServiceError

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = {"success", "completed", "captured"}
FAILURE_STATUSES = {"failed", "cancelled"}


# =============================================================================
# WALLET
# =============================================================================

def update_wallet_balance(
    db: Session,
    user_id: str,
    amount: float,
    transaction_type: str,
    description: str,
    reference_id: Optional[str] = None,
    reference_type: Optional[str] = None,
) -> WalletTransaction:
    """
    Apply a signed amount to the user's wallet and record the movement.

    Does not commit; the caller owns the transaction. A wallet is created on
    first use.

    Raises:
        ServiceError(400): a debit would take the balance below zero
    """
    wallet = db.query(UserWallet).filter(UserWallet.user_id == user_id).first()
    if not wallet:
        wallet = UserWallet(user_id=user_id, balance=0.0, currency="INR")
        db.add(wallet)
        db.flush()

    new_balance = round((wallet.balance or 0.0) + amount, 2)
    if new_balance < 0:
        raise ServiceError("Insufficient wallet balance", status_code=400)

    wallet.balance = new_balance
    wallet.updated_at = datetime.utcnow()

    txn = WalletTransaction(
        wallet_id=wallet.id,
        user_id=user_id,
        amount=amount,
        transaction_type=transaction_type,
        description=description,
        reference_id=reference_id,
        reference_type=reference_type,
        balance_after=new_balance,
    )
    db.add(txn)
    logger.info(f"Wallet {wallet.id} {transaction_type} {amount:+.2f} -> {new_balance:.2f}")
    return txn


def get_wallet_balance(db: Session, user_id: str) -> float:
    wallet = db.query(UserWallet).filter(UserWallet.user_id == user_id).first()
    return wallet.balance if wallet else 0.0


# =============================================================================
# PROMO CODES
# =============================================================================

def compute_discount(promo: PromoCode, amount: float, now: Optional[datetime] = None) -> float:
    """
    Discount the promo gives on ``amount``; 0.0 when it does not apply
    (outside validity window, used up, below minimum purchase).
    """
    now = now or datetime.utcnow()
    if promo.valid_from and now < promo.valid_from:
        return 0.0
    if promo.valid_until and now > promo.valid_until:
        return 0.0
    if promo.max_uses and (promo.used_count or 0) >= promo.max_uses:
        return 0.0
    if amount < (promo.min_purchase_amount or 0):
        return 0.0

    if promo.discount_type == DiscountType.PERCENTAGE:
        discount = amount * promo.discount_value / 100
        if promo.max_discount_amount:
            discount = min(discount, promo.max_discount_amount)
        return discount
    return promo.discount_value


def apply_promo_code(db: Session, code: Optional[str], amount: float) -> Tuple[float, float, Optional[PromoCode]]:
    """Returns (final_amount, discount_amount, promo) for an active code, else the amount unchanged."""
    if not code:
        return amount, 0.0, None

    promo = db.query(PromoCode).filter(
        PromoCode.code == code.upper(),
        PromoCode.is_active == True,  # noqa: E712
    ).first()
    if not promo:
        logger.info(f"Promo code {code.upper()} not found or inactive")
        return amount, 0.0, None

    discount = compute_discount(promo, amount)
    if discount <= 0:
        return amount, 0.0, None
    return max(0.0, amount - discount), discount, promo


# =============================================================================
# PAYMENT CREATION
# =============================================================================

def generate_order_id(payment_id: str) -> str:
    return f"ORDER_{int(time.time() * 1000)}_{payment_id[:8]}"


def create_payment(
    db: Session,
    auth: AuthContext,
    amount: float,
    gateway: str,
    payment_type: str,
    promo_code: Optional[str] = None,
    hearing_session_id: Optional[str] = None,
    case_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    if not amount or amount < 1:
        raise ServiceError("Invalid amount", status_code=400)

    final_amount, discount, promo = apply_promo_code(db, promo_code, amount)

    payment = Payment(
        user_id=auth.user_id,
        amount=final_amount,
        currency="INR",
        gateway=PaymentGateway(gateway),
        payment_type=PaymentType(payment_type),
        status=PaymentStatus.PENDING,
        hearing_session_id=hearing_session_id,
        case_id=case_id,
        extra_data={**(metadata or {}), "type": payment_type},
    )
    db.add(payment)
    db.flush()

    if payment.gateway == PaymentGateway.WALLET:
        try:
            update_wallet_balance(
                db,
                auth.user_id,
                -final_amount,
                transaction_type="wallet_topup" if payment_type == "wallet_topup" else "hearing_payment",
                description=f"Payment for {payment_type}",
                reference_id=payment.id,
                reference_type="payment",
            )
        except ServiceError:
            payment.status = PaymentStatus.FAILED
            payment.failure_reason = "Insufficient wallet balance"
            db.commit()
            raise

        payment.status = PaymentStatus.COMPLETED
        payment.completed_at = datetime.utcnow()
        db.commit()
        logger.info(f"Wallet payment {payment.id} completed for {final_amount:.2f}")
        return {"payment_id": payment.id, "status": "completed", "gateway": "wallet"}

    order_id = generate_order_id(payment.id)
    payment.gateway_order_id = order_id
    payment.status = PaymentStatus.PROCESSING

    if promo and discount > 0:
        db.add(PromoCodeUsage(
            promo_code_id=promo.id,
            user_id=auth.user_id,
            payment_id=payment.id,
            discount_amount=discount,
        ))
        promo.used_count = (promo.used_count or 0) + 1

    db.commit()
    logger.info(f"Created {gateway} order {order_id} for payment {payment.id}")

    return {
        "payment_id": payment.id,
        "gateway_order_id": order_id,
        "amount": final_amount,
        "discount_amount": discount,
        "gateway": gateway,
        "status": "pending",
        "payment_url": None,
    }


# =============================================================================
# WEBHOOK
# =============================================================================

def verify_razorpay_signature(raw_body: bytes, signature: Optional[str], secret: str) -> bool:
    """HMAC-SHA256 of the raw request body, hex encoded."""
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


def handle_payment_webhook(db: Session, body: Dict[str, Any], gateway: str = "razorpay") -> Dict[str, Any]:
    """
    Apply a gateway callback to the matching payment.

    The status change and any wallet credit are committed together. A payment
    that is already completed is never credited again.
    """
    payment_id = body.get("payment_id")
    order_id = body.get("order_id")
    status = body.get("status")
    metadata = body.get("metadata") or {}

    if not payment_id or not order_id:
        raise ServiceError("Missing required fields", status_code=400)

    payment = db.query(Payment).filter(Payment.gateway_order_id == order_id).first()
    if not payment:
        raise ServiceError("Payment not found", status_code=404)

    logger.info(f"Webhook from {gateway}: order={order_id} status={status}")
    already_completed = payment.status == PaymentStatus.COMPLETED

    payment.gateway_transaction_id = payment_id
    payment.gateway_payment_id = payment_id
    payment.updated_at = datetime.utcnow()

    try:
        if status in SUCCESS_STATUSES:
            payment.status = PaymentStatus.COMPLETED
            if not already_completed:
                payment.completed_at = datetime.utcnow()
                if payment.user_id and metadata.get("type") == "wallet_topup":
                    update_wallet_balance(
                        db,
                        payment.user_id,
                        payment.amount,
                        transaction_type="wallet_topup",
                        description="Wallet top-up via payment gateway",
                        reference_id=payment.id,
                        reference_type="payment",
                    )
            else:
                logger.info(f"Payment {payment.id} already completed; skipping credit")
        elif status in FAILURE_STATUSES:
            payment.status = PaymentStatus.FAILED
            payment.failure_reason = body.get("error_description") or "Payment failed"

        db.commit()
    except Exception:
        db.rollback()
        raise

    return {"success": True, "payment_id": payment.id}


# =============================================================================
# HISTORY
# =============================================================================

MAX_WALLET_TRANSACTIONS = 100


def list_payments(db: Session, user_id: str) -> List[Payment]:
    return (
        db.query(Payment)
        .filter(Payment.user_id == user_id)
        .order_by(Payment.created_at.desc())
        .all()
    )


def list_wallet_transactions(db: Session, user_id: str, limit: int = MAX_WALLET_TRANSACTIONS) -> List[WalletTransaction]:
    return (
        db.query(WalletTransaction)
        .filter(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.created_at.desc())
        .limit(limit)
        .all()
    )


def serialize_payment(p: Payment) -> Dict[str, Any]:
    return {
        "id": p.id,
        "amount": p.amount,
        "currency": p.currency,
        "gateway": p.gateway.value,
        "payment_type": p.payment_type.value if p.payment_type else None,
        "status": p.status.value,
        "gateway_order_id": p.gateway_order_id,
        "gateway_payment_id": p.gateway_payment_id,
        "failure_reason": p.failure_reason,
        "hearing_session_id": p.hearing_session_id,
        "case_id": p.case_id,
        "metadata": p.extra_data or {},
        "completed_at": p.completed_at.isoformat() if p.completed_at else None,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


def serialize_wallet_transaction(t: WalletTransaction) -> Dict[str, Any]:
    return {
        "id": t.id,
        "amount": t.amount,
        "transaction_type": t.transaction_type,
        "description": t.description,
        "reference_id": t.reference_id,
        "reference_type": t.reference_type,
        "balance_after": t.balance_after,
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }
