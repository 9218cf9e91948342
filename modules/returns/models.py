"""
Returns Module - Models
========================
Return: at most one per booking item (unique constraint).
Fine: monetary penalty, usually proposed from a damaged or lost return.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Text, Boolean, ForeignKey, DateTime,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from config.database import Base


class Condition(str, enum.Enum):
    GOOD = "GOOD"                    # BAIK
    MINOR_DAMAGE = "MINOR_DAMAGE"    # RUSAK_RINGAN
    MAJOR_DAMAGE = "MAJOR_DAMAGE"    # RUSAK_BERAT
    LOST = "LOST"                    # HILANG


class FineType(str, enum.Enum):
    LATE = "LATE"
    DAMAGE = "DAMAGE"
    LOSS = "LOSS"
    OTHER = "OTHER"


CONDITION_LABELS = {
    Condition.GOOD: "Baik",
    Condition.MINOR_DAMAGE: "Rusak Ringan",
    Condition.MAJOR_DAMAGE: "Rusak Berat",
    Condition.LOST: "Hilang",
}


class Return(Base):
    __tablename__ = "returns"

    id = Column(Integer, primary_key=True, index=True)
    booking_item_id = Column(
        Integer, ForeignKey("booking_items.id", ondelete="CASCADE"),
        nullable=False, unique=True,
    )
    returned_at = Column(DateTime(timezone=True), nullable=False)
    condition = Column(String, nullable=False, default=Condition.GOOD)
    notes = Column(Text, nullable=True)
    verified_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    booking_item = relationship("BookingItem")

    @property
    def condition_label(self) -> str:
        return CONDITION_LABELS.get(self.condition, self.condition)


class Fine(Base):
    __tablename__ = "fines"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    return_id = Column(Integer, ForeignKey("returns.id", ondelete="SET NULL"), nullable=True)
    type = Column(String, nullable=False, default=FineType.DAMAGE)
    amount = Column(Numeric(14, 2), nullable=False)
    notes = Column(Text, nullable=True)
    paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    booking = relationship("Booking")
    return_record = relationship("Return")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_fine_amount_positive"),
    )
