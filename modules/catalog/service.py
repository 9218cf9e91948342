"""
Catalog Module - Service Layer
================================
Read-only price and availability snapshots for the cart.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, ValidationError
from common.helpers import parse_amount
from modules.catalog.models import Asset, Service, ServicePackage, ItemKind


@dataclass(frozen=True)
class PriceSnapshot:
    kind: ItemKind
    product_id: int
    package_id: Optional[int]
    name: str
    unit_price: Decimal
    available: bool


class CatalogService:

    def get_price_snapshot(
        self, db: Session, kind: ItemKind, product_id: int, package_id: Optional[int] = None,
    ) -> PriceSnapshot:
        """Current price for one catalog line. Raises NotFoundError / ValidationError."""
        if kind == ItemKind.ASSET:
            if package_id is not None:
                raise ValidationError("Aset tidak memiliki paket")
            asset = db.query(Asset).filter(Asset.id == product_id).first()
            if not asset:
                raise NotFoundError("Aset tidak ditemukan")
            return PriceSnapshot(
                kind=kind, product_id=asset.id, package_id=None, name=asset.name,
                unit_price=parse_amount(asset.daily_rate), available=asset.is_available,
            )

        service = db.query(Service).filter(Service.id == product_id).first()
        if not service:
            raise NotFoundError("Layanan tidak ditemukan")

        if package_id is None:
            return PriceSnapshot(
                kind=kind, product_id=service.id, package_id=None, name=service.name,
                unit_price=parse_amount(service.unit_rate), available=bool(service.is_active),
            )

        package = db.query(ServicePackage).filter(
            ServicePackage.id == package_id,
            ServicePackage.service_id == service.id,
        ).first()
        if not package:
            raise NotFoundError("Paket layanan tidak ditemukan")
        return PriceSnapshot(
            kind=kind, product_id=service.id, package_id=package.id,
            name=f"{service.name} - {package.name}",
            unit_price=parse_amount(package.unit_rate),
            available=bool(service.is_active and package.is_active),
        )


# Singleton
catalog_service = CatalogService()
