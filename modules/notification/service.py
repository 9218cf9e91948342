"""
UMC Media Hub - Notification Service
=====================================
Writes in-app notifications inside the caller's unit of work.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy import desc

from common.helpers import now_utc
from common.result import as_result
from modules.notification.models import Notification, NotificationChannel, NotificationType

logger = logging.getLogger("umc.notification")


class NotificationService:

    # ------------------------------------------------------------------
    # Core: Send Notification
    # ------------------------------------------------------------------

    def send(
        self,
        db: Session,
        user_id: int,
        notification_type: NotificationType,
        title: str,
        body: Optional[str] = None,
    ) -> Notification:
        """
        Create an in-app notification. Participates in the caller's
        transaction (no commit here).
        """
        notif = Notification(
            user_id=user_id,
            notification_type=NotificationType(notification_type).value,
            channel=NotificationChannel.APP.value,
            title=title,
            body=body,
        )
        db.add(notif)
        logger.debug(f"Notification to user #{user_id}: {title}")
        return notif

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_unread_count(self, db: Session, user_id: int) -> int:
        return db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        ).count()

    @as_result
    def list_notifications(
        self, db: Session, user_id: int, page: int = 1, per_page: int = 20,
    ) -> Tuple[List[Notification], int]:
        q = db.query(Notification).filter(Notification.user_id == user_id)
        total = q.count()
        items = (
            q.order_by(desc(Notification.created_at), desc(Notification.id))
            .offset((max(page, 1) - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return items, total

    @as_result
    def mark_as_read(self, db: Session, user_id: int, notification_id: int) -> bool:
        notif = db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        ).first()
        if notif and not notif.is_read:
            notif.is_read = True
            notif.read_at = now_utc()
            db.flush()
            return True
        return False

    @as_result
    def mark_all_read(self, db: Session, user_id: int) -> int:
        count = db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read == False,  # noqa: E712
        ).update({"is_read": True, "read_at": now_utc()}, synchronize_session=False)
        db.flush()
        return count


# Singleton
notification_service = NotificationService()
