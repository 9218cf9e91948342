"""
UMC Media Hub - Demo Catalog Seeder
=====================================
Seeds a small catalog (categories, assets, services with packages) and
prints bearer tokens for a demo borrower and a demo admin.

Usage:
    python scripts/seed.py          # Seed (skips rows that already exist)
    python scripts/seed.py --reset  # Drop all tables and reseed
"""

import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine  # noqa: E402
from common.security import create_access_token  # noqa: E402
from modules.catalog.models import (  # noqa: E402
    Category, Asset, Service, ServicePackage, ItemKind, AssetStatus,
)
from modules.user.models import Role  # noqa: E402
from modules.booking.models import Booking  # noqa: F401, E402
from modules.payment.models import Payment  # noqa: F401, E402
from modules.returns.models import Return, Fine  # noqa: F401, E402
from modules.loan.models import LoanExtension  # noqa: F401, E402
from modules.feedback.models import Feedback  # noqa: F401, E402
from modules.notification.models import Notification  # noqa: F401, E402
from modules.cart.models import CartItem  # noqa: F401, E402


CATEGORIES = [
    ("Kamera", ItemKind.ASSET, "Kamera foto & video"),
    ("Audio", ItemKind.ASSET, "Mikrofon, mixer, speaker"),
    ("Produksi", ItemKind.SERVICE, "Jasa dokumentasi & produksi"),
]

ASSETS = [
    # code, name, category, daily rate, stock
    ("CAM-001", "Sony A7 III", "Kamera", "150000", 2),
    ("CAM-002", "Canon EOS 80D", "Kamera", "100000", 3),
    ("AUD-001", "Rode Wireless GO II", "Audio", "50000", 4),
    ("AUD-002", "Zoom H6 Recorder", "Audio", "75000", 1),
]

SERVICES = [
    # code, name, category, unit rate, packages [(name, rate)]
    ("SRV-DOC", "Dokumentasi Acara", "Produksi", "500000", [("Half Day", "750000"), ("Full Day", "1300000")]),
    ("SRV-LIVE", "Live Streaming", "Produksi", "1000000", []),
]


def seed(db):
    categories = {}
    for name, kind, desc in CATEGORIES:
        cat = db.query(Category).filter(Category.name == name, Category.type == kind.value).first()
        if not cat:
            cat = Category(name=name, type=kind.value, description=desc)
            db.add(cat)
            db.flush()
            print(f"  + Category {name}")
        categories[name] = cat

    for code, name, cat_name, rate, stock in ASSETS:
        if db.query(Asset).filter(Asset.code == code).first():
            continue
        db.add(Asset(
            code=code, name=name, category_id=categories[cat_name].id,
            daily_rate=Decimal(rate), stock=stock, status=AssetStatus.AVAILABLE.value,
        ))
        print(f"  + Asset {code} {name}")

    for code, name, cat_name, rate, packages in SERVICES:
        if db.query(Service).filter(Service.code == code).first():
            continue
        service = Service(code=code, name=name, category_id=categories[cat_name].id, unit_rate=Decimal(rate))
        for pkg_name, pkg_rate in packages:
            service.packages.append(ServicePackage(name=pkg_name, unit_rate=Decimal(pkg_rate)))
        db.add(service)
        print(f"  + Service {code} {name} ({len(packages)} packages)")

    db.commit()


def main():
    if "--reset" in sys.argv:
        print("Dropping all tables...")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    print("\nDemo tokens:")
    print(f"  borrower #1: {create_access_token({'sub': '1', 'role': Role.BORROWER.value})}")
    print(f"  admin #100:  {create_access_token({'sub': '100', 'role': Role.ADMIN.value})}")


if __name__ == "__main__":
    main()
