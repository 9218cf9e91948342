"""
UMC Media Hub - Notification Routes
=====================================
Notification list, mark-read, unread count.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import iso
from common.result import unwrap
from modules.auth.deps import require_login
from modules.notification.service import notification_service

router = APIRouter(tags=["notifications"])


def notification_dict(notif) -> dict:
    return {
        "id": notif.id,
        "type": notif.notification_type,
        "typeLabel": notif.type_label,
        "title": notif.title,
        "body": notif.body,
        "isRead": notif.is_read,
        "readAt": iso(notif.read_at),
        "createdAt": iso(notif.created_at),
    }


# ------------------------------------------------------------------
# GET /notifications: own notifications, newest first
# ------------------------------------------------------------------
@router.get("/notifications")
async def notification_list(
    page: int = 1,
    per_page: int = 20,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    notifications, total = unwrap(notification_service.list_notifications(db, me.id, page=page, per_page=per_page))
    return {
        "items": [notification_dict(n) for n in notifications],
        "total": total,
        "page": page,
        "unreadCount": notification_service.get_unread_count(db, me.id),
    }


# ------------------------------------------------------------------
# PATCH /notifications/read: mark all as read
# ------------------------------------------------------------------
@router.patch("/notifications/read")
async def mark_all_read(
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    updated = unwrap(notification_service.mark_all_read(db, me.id), db)
    return {"updated": updated, "unreadCount": 0}


# ------------------------------------------------------------------
# PATCH /notifications/{id}/read: mark single as read
# ------------------------------------------------------------------
@router.patch("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    changed = unwrap(notification_service.mark_as_read(db, me.id, notification_id), db)
    return {"updated": changed, "unreadCount": notification_service.get_unread_count(db, me.id)}
