"""
Alembic Environment
=====================
The database URL comes from config.settings; alembic.ini only carries
logging. Every model module is imported so autogenerate sees all tables.

SQLite databases are migrated in batch mode (table copy), since SQLite
cannot ALTER most column properties in place.
"""

import sys
import os
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.settings import DATABASE_URL  # noqa: E402
from config.database import Base  # noqa: E402

from modules.catalog.models import Category, Asset, Service, ServicePackage  # noqa: F401, E402
from modules.cart.models import CartItem  # noqa: F401, E402
from modules.booking.models import Booking, BookingItem, BookingStatusLog  # noqa: F401, E402
from modules.payment.models import Payment  # noqa: F401, E402
from modules.loan.models import LoanExtension  # noqa: F401, E402
from modules.returns.models import Return, Fine  # noqa: F401, E402
from modules.feedback.models import Feedback  # noqa: F401, E402
from modules.notification.models import Notification  # noqa: F401, E402

config = context.config
config.set_main_option("sqlalchemy.url", DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _configure(**kwargs):
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=IS_SQLITE,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
