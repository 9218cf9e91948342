"""
Catalog Module - Models
========================
Category, Asset, Service and ServicePackage. Catalog CRUD lives elsewhere;
the booking engine only reads prices and availability from these rows.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, Text,
    ForeignKey, DateTime, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class ItemKind(str, enum.Enum):
    ASSET = "ASSET"
    SERVICE = "SERVICE"


class AssetStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    ON_LOAN = "ON_LOAN"
    INACTIVE = "INACTIVE"


# ==========================================
# 🗂️ Category
# ==========================================

class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    type = Column(String, default=ItemKind.ASSET, nullable=False)
    description = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("name", "type", name="uq_category_name_type"),
    )

    def __repr__(self):
        return f"<Category {self.name}>"


# ==========================================
# 🎥 Asset (physical, countable, daily rate)
# ==========================================

class Asset(Base):
    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    specification = Column(Text, nullable=True)
    daily_rate = Column(Numeric(14, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=1)
    status = Column(String, default=AssetStatus.AVAILABLE, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    category = relationship("Category")

    @property
    def is_available(self) -> bool:
        return self.status == AssetStatus.AVAILABLE and (self.stock or 0) > 0


# ==========================================
# 🛠️ Service (non-physical, per unit)
# ==========================================

class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    unit_rate = Column(Numeric(14, 2), nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    category = relationship("Category")
    packages = relationship("ServicePackage", back_populates="service", cascade="all, delete-orphan")


class ServicePackage(Base):
    __tablename__ = "service_packages"

    id = Column(Integer, primary_key=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    unit_rate = Column(Numeric(14, 2), nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    service = relationship("Service", back_populates="packages")
