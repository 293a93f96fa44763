"""
In-app notifications and the helpers that create them for hearing events.
"""

import logging
from typing import Optional, List

from sqlalchemy.orm import Session

from .db.models import Notification, NotificationType

logger = logging.getLogger(__name__)

SESSION_STATUS_MESSAGES = {
    "in_progress": "The court session has started.",
    "adjourned": "The court session has been adjourned.",
    "completed": "The court session has ended.",
}


def create_notification(
    db: Session,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    related_case_id: Optional[str] = None,
    related_session_id: Optional[str] = None,
) -> Notification:
    """Add a notification; the caller commits."""
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        related_case_id=related_case_id,
        related_session_id=related_session_id,
    )
    db.add(notification)
    logger.info(f"Notification {type.value} queued for user {user_id}")
    return notification


def notify_hand_raise_approved(db: Session, user_id: str, session_id: str, response: str) -> Notification:
    return create_notification(
        db, user_id,
        title="Hand Raise Approved",
        message=f'The judge has approved your hand raise: "{response}"',
        type=NotificationType.HAND_RAISE,
        related_session_id=session_id,
    )


def notify_witness_summoned(db: Session, user_id: str, session_id: str, witness_name: str) -> Notification:
    return create_notification(
        db, user_id,
        title="Witness Summoned",
        message=f'Witness "{witness_name}" has been summoned to testify.',
        type=NotificationType.WITNESS_SUMMON,
        related_session_id=session_id,
    )


def notify_session_status_change(db: Session, user_id: str, session_id: str, status: str) -> Notification:
    return create_notification(
        db, user_id,
        title="Session Status Update",
        message=SESSION_STATUS_MESSAGES.get(status, f"Session status changed to: {status}"),
        type=NotificationType.SESSION_STATUS,
        related_session_id=session_id,
    )


def notify_date_request_decision(
    db: Session, user_id: str, session_id: str, approved: bool, reason: Optional[str] = None
) -> Notification:
    if approved:
        message = "Your request for a new hearing date has been approved." + (f" {reason}" if reason else "")
    else:
        message = "Your request for a new hearing date was denied." + (f" Reason: {reason}" if reason else "")
    return create_notification(
        db, user_id,
        title="Date Request Approved" if approved else "Date Request Denied",
        message=message,
        type=NotificationType.DATE_REQUEST,
        related_session_id=session_id,
    )


def notify_verification_status(
    db: Session, user_id: str, case_id: str, approved: bool, notes: Optional[str] = None
) -> Notification:
    if approved:
        message = "Verification for this case has been approved." + (f" {notes}" if notes else "")
    else:
        message = "Verification for this case was rejected." + (f" Notes: {notes}" if notes else "")
    return create_notification(
        db, user_id,
        title="Verification Approved" if approved else "Verification Rejected",
        message=message,
        type=NotificationType.VERIFICATION,
        related_case_id=case_id,
    )


def list_notifications(db: Session, user_id: str, limit: int = 50) -> List[Notification]:
    """Unread first, newest first within each group."""
    return (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.is_read.asc(), Notification.created_at.desc())
        .limit(limit)
        .all()
    )


def mark_read(db: Session, user_id: str, notification_id: str) -> Optional[Notification]:
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first()
    if notification:
        notification.is_read = True
        db.commit()
    return notification


def mark_all_read(db: Session, user_id: str) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def serialize_notification(n: Notification) -> dict:
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "type": n.type.value,
        "is_read": n.is_read,
        "related_case_id": n.related_case_id,
        "related_session_id": n.related_session_id,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }
