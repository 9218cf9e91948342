"""
Cart Module - Models
=====================
Pending selections per owner, with a unit price captured when added.
"""

from sqlalchemy import (
    Column, Integer, String, Numeric, Text, DateTime,
    Index, CheckConstraint,
)
from sqlalchemy.sql import func
from config.database import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    kind = Column(String, nullable=False)                 # ASSET / SERVICE
    product_id = Column(Integer, nullable=False)          # asset_id or service_id
    package_id = Column(Integer, nullable=True)
    name = Column(String, nullable=False, default="")
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_cart_owner_line", "owner_id", "kind", "product_id", "package_id"),
        CheckConstraint("quantity >= 1", name="ck_cart_qty"),
        CheckConstraint("unit_price >= 0", name="ck_cart_price"),
    )

    @property
    def line_total(self):
        return self.unit_price * self.quantity
