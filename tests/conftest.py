"""
Shared fixtures: in-memory SQLite, demo catalog, fake payment gateway,
bearer tokens for a borrower and an admin.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PAYMENT_GATEWAY"] = "fake"

from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from config.database import Base, SessionLocal, engine, get_db  # noqa: E402
from common.exceptions import TransportError  # noqa: E402
from common.security import create_access_token  # noqa: E402
from main import app  # noqa: E402
from modules.booking.service import booking_service  # noqa: E402
from modules.booking.state_machine import booking_state_machine  # noqa: E402
from modules.cart.service import cart_service  # noqa: E402
from modules.catalog.models import Asset, Service, ServicePackage, ItemKind, AssetStatus  # noqa: E402
from modules.payment.gateways import (  # noqa: E402
    BaseGateway, GatewayCreateResult, GatewayStatusResult, register_gateway,
)
from modules.payment.models import Payment, PaymentStatus  # noqa: E402
from modules.payment.service import payment_service  # noqa: E402
from modules.user.models import Actor, Role  # noqa: E402

BORROWER_ID = 1
OTHER_BORROWER_ID = 2
ADMIN_ID = 100


class FakeGateway(BaseGateway):
    """Scriptable gateway: tests set the next raw status or a failure."""
    name = "fake"
    label = "Fake"

    STATUS_MAP = {
        "settlement": PaymentStatus.PAID,
        "capture": PaymentStatus.PAID,
        "pending": PaymentStatus.PENDING,
        "expire": PaymentStatus.FAILED,
        "refund": PaymentStatus.REFUNDED,
    }

    def __init__(self):
        self.reset()

    def reset(self):
        self.raw_status = "pending"
        self.settled_at = None
        self.refuse_create = False
        self.transport_down = False
        self.created = []

    def create_payment(self, req):
        if self.transport_down:
            raise TransportError("connection refused")
        if self.refuse_create:
            return GatewayCreateResult(success=False, error_message="merchant disabled")
        self.created.append(req)
        return GatewayCreateResult(success=True, redirect_url=f"https://pay.test/{req.order_ref}", token="tok")

    def get_status(self, order_ref):
        if self.transport_down:
            raise TransportError("connection refused")
        return GatewayStatusResult(
            success=True,
            payment_status=self.STATUS_MAP[self.raw_status],
            gateway_status=self.raw_status,
            settled_at=self.settled_at,
        )


fake_gateway = FakeGateway()
register_gateway(fake_gateway)


@pytest.fixture(autouse=True)
def _fresh_state():
    Base.metadata.create_all(bind=engine)
    fake_gateway.reset()
    payment_service.gateway_name = fake_gateway.name
    payment_service.pay_hints.invalidate()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def catalog(db):
    """a1: ASSET @ 50000/day, s1: SERVICE @ 100000/unit with one package."""
    a1 = Asset(code="CAM-001", name="Sony A7 III", daily_rate=Decimal("50000"), stock=3,
               status=AssetStatus.AVAILABLE.value)
    a2 = Asset(code="CAM-002", name="Canon 80D", daily_rate=Decimal("75000"), stock=0,
               status=AssetStatus.AVAILABLE.value)
    s1 = Service(code="SRV-DOC", name="Dokumentasi", unit_rate=Decimal("100000"))
    s1.packages.append(ServicePackage(name="Full Day", unit_rate=Decimal("250000")))
    db.add_all([a1, a2, s1])
    db.commit()
    return {"a1": a1, "a2": a2, "s1": s1, "pkg": s1.packages[0]}


@pytest.fixture
def borrower():
    return Actor(id=BORROWER_ID, role=Role.BORROWER)


@pytest.fixture
def other_borrower():
    return Actor(id=OTHER_BORROWER_ID, role=Role.BORROWER)


@pytest.fixture
def admin():
    return Actor(id=ADMIN_ID, role=Role.ADMIN)


@pytest.fixture
def gateway():
    return fake_gateway


@pytest.fixture
def client(db):
    def _override_db():
        yield db

    app.dependency_overrides[get_db] = _override_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth_headers(actor_id: int, role: Role = Role.BORROWER) -> dict:
    token = create_access_token({"sub": str(actor_id), "role": role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def borrower_headers():
    return auth_headers(BORROWER_ID)


@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID, Role.ADMIN)


# ==========================================
# Scenario helpers
# ==========================================

def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_booking(db, catalog, owner_id=BORROWER_ID, start="2025-01-01", end="2025-01-03",
                 notes="Untuk acara kampus"):
    """Cart [a1 x2, s1 x1] -> WAITING booking (total 200000), committed."""
    assert cart_service.add(db, owner_id, ItemKind.ASSET, catalog["a1"].id, quantity=2).success
    assert cart_service.add(db, owner_id, ItemKind.SERVICE, catalog["s1"].id, quantity=1).success
    db.commit()
    result = booking_service.checkout(db, owner_id, start, end, notes)
    assert result.success, result.message
    db.commit()
    return result.value


def confirm(db, booking, admin_actor):
    result = booking_state_machine.approve(db, booking.id, admin_actor)
    assert result.success, result.message
    db.commit()
    return result.value


def add_paid_payment(db, booking):
    payment = Payment(
        booking_id=booking.id,
        amount=booking.total_amount,
        status=PaymentStatus.PAID.value,
        gateway="fake",
        gateway_ref=f"UMC-{booking.id}-manual",
        paid_at=utc(2025, 1, 1, 9),
    )
    db.add(payment)
    db.commit()
    return payment


def complete(db, booking, admin_actor):
    add_paid_payment(db, booking)
    result = booking_state_machine.complete(db, booking.id, admin_actor)
    assert result.success, result.message
    db.commit()
    return result.value
