"""
UMC Media Hub - Notification Models
====================================
In-app notification center.
"""

import enum

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Boolean, Index,
)
from sqlalchemy.sql import func

from config.database import Base


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NotificationType(str, enum.Enum):
    BOOKING = "BOOKING"
    PAYMENT = "PAYMENT"
    RETURN = "RETURN"
    SYSTEM = "SYSTEM"


class NotificationChannel(str, enum.Enum):
    APP = "APP"


NOTIFICATION_TYPE_LABELS = {
    NotificationType.BOOKING: "Booking",
    NotificationType.PAYMENT: "Pembayaran",
    NotificationType.RETURN: "Pengembalian",
    NotificationType.SYSTEM: "Sistem",
}


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False)
    notification_type = Column(String(50), nullable=False)
    channel = Column(String(20), default=NotificationChannel.APP, nullable=False)
    title = Column(String(300), nullable=False)
    body = Column(Text, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_notification_user_unread", "user_id", "is_read"),
    )

    @property
    def type_label(self) -> str:
        try:
            return NOTIFICATION_TYPE_LABELS.get(NotificationType(self.notification_type), self.notification_type)
        except ValueError:
            return self.notification_type
