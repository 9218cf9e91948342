"""
UMC Media Hub - Database Initialization
=========================================
Creates the rental tables that are missing and reports row counts.
Existing tables are left untouched; schema changes go through Alembic.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --drop   # Drop and recreate all tables (asks first)
    python scripts/init_db.py --seed   # Also load the demo catalog
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import inspect, text  # noqa: E402

from config.database import Base, SessionLocal, engine  # noqa: E402

from modules.catalog.models import Category, Asset, Service, ServicePackage  # noqa: F401, E402
from modules.cart.models import CartItem  # noqa: F401, E402
from modules.booking.models import Booking, BookingItem, BookingStatusLog  # noqa: F401, E402
from modules.payment.models import Payment  # noqa: F401, E402
from modules.loan.models import LoanExtension  # noqa: F401, E402
from modules.returns.models import Return, Fine  # noqa: F401, E402
from modules.feedback.models import Feedback  # noqa: F401, E402
from modules.notification.models import Notification  # noqa: F401, E402


def init_db(drop_first: bool = False):
    if drop_first:
        print("Dropping rental tables...")
        Base.metadata.drop_all(bind=engine)

    existing = set(inspect(engine).get_table_names())
    Base.metadata.create_all(bind=engine)

    print(f"Rental tables ({len(Base.metadata.sorted_tables)}):")
    with engine.connect() as conn:
        for table in Base.metadata.sorted_tables:
            rows = conn.execute(text(f"SELECT COUNT(*) FROM {table.name}")).scalar()
            marker = " " if table.name in existing else "+"
            print(f"  {marker} {table.name:<24} {rows} rows")


if __name__ == "__main__":
    drop = "--drop" in sys.argv
    if drop:
        answer = input("This will DROP every rental table. Type 'yes': ")
        if answer.strip().lower() != "yes":
            print("Aborted.")
            sys.exit(0)
    init_db(drop_first=drop)

    if "--seed" in sys.argv:
        from scripts.seed import seed
        db = SessionLocal()
        try:
            seed(db)
        finally:
            db.close()
