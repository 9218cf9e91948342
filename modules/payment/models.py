"""
Payment Module - Models
========================
One Payment per attempt against a Booking. At most one PENDING or PAID
payment may exist per booking; a partial unique index
enforces it in the database.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Text, ForeignKey, DateTime, Index, text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from config.database import Base


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    QRIS = "QRIS"


# A payment in one of these states blocks a new payment for the booking
BLOCKING_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.PAID.value)
_BLOCKING_SQL = text("status IN ('PENDING', 'PAID')")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    method = Column(String, default=PaymentMethod.TRANSFER, nullable=False)
    status = Column(String, default=PaymentStatus.PENDING, nullable=False)
    proof_url = Column(String, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    # Gateway bookkeeping
    gateway = Column(String, nullable=True)
    gateway_ref = Column(String, nullable=True, unique=True)   # order id sent to the gateway
    payment_url = Column(Text, nullable=True)
    gateway_status = Column(String, nullable=True)             # last raw status seen

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    booking = relationship("Booking")

    __table_args__ = (
        Index("ix_payment_booking_status", "booking_id", "status"),
        Index(
            "uq_payment_booking_open", "booking_id", unique=True,
            postgresql_where=_BLOCKING_SQL, sqlite_where=_BLOCKING_SQL,
        ),
    )

    @property
    def status_label(self) -> str:
        labels = {
            PaymentStatus.PENDING: "Menunggu Pembayaran",
            PaymentStatus.PAID: "Lunas",
            PaymentStatus.FAILED: "Gagal",
            PaymentStatus.REFUNDED: "Dikembalikan",
        }
        return labels.get(self.status, self.status)
