"""
Booking Module - Models
========================
Booking with an immutable price snapshot per item, plus a status audit log.
"""

import enum
import re
from sqlalchemy import (
    Column, Integer, String, Numeric, Text, ForeignKey, DateTime, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from config.database import Base
from config.settings import REJECT_REASON_PREFIX


class BookingStatus(str, enum.Enum):
    WAITING = "WAITING"          # MENUNGGU
    CONFIRMED = "CONFIRMED"      # DIKONFIRMASI
    REJECTED = "REJECTED"        # DITOLAK
    CANCELLED = "CANCELLED"      # DIBATALKAN
    COMPLETED = "COMPLETED"      # SELESAI


class BookingType(str, enum.Enum):
    ASSET = "ASSET"
    SERVICE = "SERVICE"
    MIXED = "MIXED"


_REJECT_REASON_RE = re.compile(re.escape(REJECT_REASON_PREFIX) + r"\s*(.+)")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, nullable=False, index=True)
    type = Column(String, nullable=False, default=BookingType.ASSET)
    status = Column(String, default=BookingStatus.WAITING, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Approval / rejection
    approved_by = Column(Integer, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    items = relationship(
        "BookingItem", back_populates="booking",
        cascade="all, delete-orphan", order_by="BookingItem.id",
    )
    status_logs = relationship(
        "BookingStatusLog", back_populates="booking",
        cascade="all, delete-orphan", order_by="BookingStatusLog.id",
    )

    __table_args__ = (
        Index("ix_booking_owner_status", "owner_id", "status"),
    )

    @property
    def status_label(self) -> str:
        labels = {
            BookingStatus.WAITING: "Menunggu",
            BookingStatus.CONFIRMED: "Dikonfirmasi",
            BookingStatus.REJECTED: "Ditolak",
            BookingStatus.CANCELLED: "Dibatalkan",
            BookingStatus.COMPLETED: "Selesai",
        }
        return labels.get(self.status, self.status)

    @property
    def reject_reason(self):
        """
        Structured reason, falling back to the legacy "Alasan ditolak:" note
        (first match only). Only a REJECTED booking has a reason.
        """
        if self.status != BookingStatus.REJECTED:
            return None
        if self.rejection_reason:
            return self.rejection_reason
        if self.notes:
            match = _REJECT_REASON_RE.search(self.notes)
            if match:
                return match.group(1).strip()
        return None


class BookingItem(Base):
    __tablename__ = "booking_items"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    item_type = Column(String, nullable=False)              # ASSET / SERVICE
    ref_id = Column(Integer, nullable=False)                # asset_id or service_id
    package_id = Column(Integer, nullable=True)
    name = Column(String, nullable=False, default="")

    # Price snapshot at checkout
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False)

    booking = relationship("Booking", back_populates="items")


class BookingStatusLog(Base):
    __tablename__ = "booking_status_logs"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    old_status = Column(String, nullable=True)
    new_status = Column(String, nullable=False)
    changed_by = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    booking = relationship("Booking", back_populates="status_logs")
