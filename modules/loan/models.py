"""
Loan Module - Models
=====================
Loans themselves are derived from bookings; only extensions are stored,
so BookingItem stays immutable.
"""

from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text
from sqlalchemy.sql import func

from config.database import Base


class LoanExtension(Base):
    __tablename__ = "loan_extensions"

    id = Column(Integer, primary_key=True)
    booking_item_id = Column(Integer, ForeignKey("booking_items.id", ondelete="CASCADE"), nullable=False, index=True)
    days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
