"""
Notification API Endpoints
==========================

- GET  /api/notifications                 - Own notifications, unread first
- POST /api/notifications/{id}/read
- POST /api/notifications/read-all
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from .auth import AuthContext, require_auth
from .db.session import get_db
from .errors import ServiceError
from .notifications import list_notifications, mark_read, mark_all_read, serialize_notification

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def get_notifications(
    limit: int = Query(default=50, ge=1, le=200),
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    items = list_notifications(db, auth.user_id, limit=limit)
    return {
        "notifications": [serialize_notification(n) for n in items],
        "unread_count": sum(1 for n in items if not n.is_read),
    }


@router.post("/read-all")
async def read_all(
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return {"updated": mark_all_read(db, auth.user_id)}


@router.post("/{notification_id}/read")
async def read_one(
    notification_id: str,
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
):
    notification = mark_read(db, auth.user_id, notification_id)
    if not notification:
        raise ServiceError("Notification not found", status_code=404)
    return serialize_notification(notification)
