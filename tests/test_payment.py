from decimal import Decimal

import httpx
import pytest
from sqlalchemy.exc import IntegrityError

from common.exceptions import (
    AuthorizationError, ConflictError, PaymentAlreadyExistsError, PaymentError, TransportError,
)
from modules.payment.gateways import GatewayPaymentRequest, GatewayStatusResult
from modules.payment.gateways.midtrans import MidtransGateway, map_transaction_status
from modules.payment.models import Payment, PaymentStatus
from modules.payment.service import payment_service

from conftest import confirm, make_booking, utc


def _confirmed(db, catalog, admin):
    booking = make_booking(db, catalog)
    return confirm(db, booking, admin)


def test_create_requires_confirmed_booking(db, catalog, borrower):
    booking = make_booking(db, catalog)

    result = payment_service.create_payment(db, booking.id, borrower)

    assert isinstance(result.error, ConflictError)
    assert not isinstance(result.error, PaymentAlreadyExistsError)


def test_create_payment_returns_gateway_url(db, catalog, borrower, admin, gateway):
    booking = _confirmed(db, catalog, admin)

    payment = payment_service.create_payment(db, booking.id, borrower).value

    assert payment.status == PaymentStatus.PENDING
    assert payment.amount == Decimal("200000")
    assert payment.payment_url == f"https://pay.test/{payment.gateway_ref}"
    assert gateway.created[0].amount == Decimal("200000")


def test_second_payment_signals_already_exists(db, catalog, borrower, admin):
    booking = _confirmed(db, catalog, admin)
    first = payment_service.create_payment(db, booking.id, borrower).value
    db.commit()

    again = payment_service.create_payment(db, booking.id, borrower)

    assert isinstance(again.error, PaymentAlreadyExistsError)
    assert again.code == "PAYMENT_EXISTS"
    assert again.error.payment_id == first.id
    assert payment_service.pay_action_hint(booking.id) is False


def test_open_payment_is_unique_per_booking_in_database(db, catalog, admin):
    booking = _confirmed(db, catalog, admin)
    db.add_all([
        Payment(booking_id=booking.id, amount=Decimal("1"), status=PaymentStatus.PENDING.value),
        Payment(booking_id=booking.id, amount=Decimal("1"), status=PaymentStatus.PAID.value),
    ])

    with pytest.raises(IntegrityError):
        db.flush()


def test_closed_payments_do_not_count_against_the_unique_index(db, catalog, admin):
    booking = _confirmed(db, catalog, admin)
    db.add_all([
        Payment(booking_id=booking.id, amount=Decimal("1"), status=PaymentStatus.FAILED.value),
        Payment(booking_id=booking.id, amount=Decimal("1"), status=PaymentStatus.FAILED.value),
        Payment(booking_id=booking.id, amount=Decimal("1"), status=PaymentStatus.PENDING.value),
    ])
    db.flush()

    assert db.query(Payment).count() == 3


def test_concurrent_create_reports_existing_payment(db, catalog, borrower, admin, monkeypatch):
    booking = _confirmed(db, catalog, admin)
    booking_id = booking.id
    first_id = payment_service.create_payment(db, booking_id, borrower).value.id
    db.commit()

    # The existence check misses once, as if the other request committed right after it
    real_lookup = payment_service._open_payment
    calls = []

    def racing_lookup(session, bid):
        calls.append(bid)
        return None if len(calls) == 1 else real_lookup(session, bid)

    monkeypatch.setattr(payment_service, "_open_payment", racing_lookup)

    again = payment_service.create_payment(db, booking_id, borrower)

    assert isinstance(again.error, PaymentAlreadyExistsError)
    assert again.error.payment_id == first_id
    assert db.query(Payment).filter(Payment.status == PaymentStatus.PENDING.value).count() == 1
    assert payment_service.pay_action_hint(booking_id) is False


def test_failed_payment_does_not_block_a_new_one(db, catalog, borrower, admin, gateway):
    booking = _confirmed(db, catalog, admin)
    first = payment_service.create_payment(db, booking.id, borrower).value
    db.commit()
    gateway.raw_status = "expire"
    payment_service.check_status(db, first.id, borrower)
    db.commit()

    assert payment_service.create_payment(db, booking.id, borrower).success


def test_only_owner_or_admin_can_pay(db, catalog, other_borrower, admin):
    booking = _confirmed(db, catalog, admin)

    assert isinstance(payment_service.create_payment(db, booking.id, other_borrower).error, AuthorizationError)


def test_gateway_refusal_is_a_failed_result(db, catalog, borrower, admin, gateway):
    booking = _confirmed(db, catalog, admin)
    gateway.refuse_create = True

    result = payment_service.create_payment(db, booking.id, borrower)

    assert isinstance(result.error, PaymentError)
    assert "merchant disabled" in result.message
    assert db.query(Payment).count() == 0


def test_transport_error_propagates(db, catalog, borrower, admin, gateway):
    booking = _confirmed(db, catalog, admin)
    gateway.transport_down = True

    with pytest.raises(TransportError, match="connection refused"):
        payment_service.create_payment(db, booking.id, borrower)


def test_check_status_overwrites_local_status_and_backfills_paid_at(db, catalog, borrower, admin, gateway):
    booking = _confirmed(db, catalog, admin)
    payment = payment_service.create_payment(db, booking.id, borrower).value
    db.commit()
    gateway.raw_status = "settlement"
    gateway.settled_at = utc(2025, 1, 2, 10)

    view = payment_service.check_status(db, payment.id, borrower).value

    assert view.payment_status == PaymentStatus.PAID
    assert view.gateway_status == "settlement"
    assert view.payment.paid_at == utc(2025, 1, 2, 10)
    assert payment_service.pay_action_hint(booking.id) is False


def test_gateway_status_wins_even_when_it_downgrades(db, catalog, borrower, admin, gateway):
    booking = _confirmed(db, catalog, admin)
    payment = payment_service.create_payment(db, booking.id, borrower).value
    gateway.raw_status = "settlement"
    payment_service.check_status(db, payment.id, borrower)
    paid_at = payment.paid_at

    gateway.raw_status = "refund"
    view = payment_service.check_status(db, payment.id, borrower).value

    assert view.payment_status == PaymentStatus.REFUNDED
    assert view.payment.paid_at == paid_at
    assert payment_service.pay_action_hint(booking.id) is True


def test_paid_at_is_not_backfilled_without_settlement(db, catalog, borrower, admin, gateway, monkeypatch):
    booking = _confirmed(db, catalog, admin)
    payment = payment_service.create_payment(db, booking.id, borrower).value

    # Gateway says PAID but raw status is not a settlement-equivalent
    monkeypatch.setattr(gateway, "get_status", lambda ref: GatewayStatusResult(
        success=True, payment_status=PaymentStatus.PAID, gateway_status="authorize",
    ))
    view = payment_service.check_status(db, payment.id, borrower).value

    assert view.payment_status == PaymentStatus.PAID
    assert view.payment.paid_at is None


def test_list_and_summary(db, catalog, borrower, other_borrower, admin, gateway):
    booking = _confirmed(db, catalog, admin)
    payment = payment_service.create_payment(db, booking.id, borrower).value
    gateway.raw_status = "settlement"
    payment_service.check_status(db, payment.id, borrower)
    db.commit()

    assert [p.id for p in payment_service.list_payments(db, borrower).value] == [payment.id]
    assert payment_service.list_payments(db, other_borrower).value == []
    assert payment_service.list_payments(db, admin, "pending").value == []
    assert isinstance(payment_service.get_payment(db, payment.id, other_borrower).error, AuthorizationError)

    summary = payment_service.booking_summary(db, booking.id, admin).value
    assert summary.paid_total == Decimal("200000")
    assert summary.latest_status == "PAID"
    assert summary.payment_count == 1
    assert isinstance(payment_service.booking_summary(db, booking.id, borrower).error, AuthorizationError)


@pytest.mark.parametrize("raw,fraud,expected", [
    ("settlement", None, PaymentStatus.PAID),
    ("capture", "accept", PaymentStatus.PAID),
    ("capture", "challenge", PaymentStatus.PENDING),
    ("pending", None, PaymentStatus.PENDING),
    ("expire", None, PaymentStatus.FAILED),
    ("deny", None, PaymentStatus.FAILED),
    ("refund", None, PaymentStatus.REFUNDED),
    ("something_new", None, None),
])
def test_midtrans_status_mapping(raw, fraud, expected):
    assert map_transaction_status(raw, fraud) == expected


def test_midtrans_network_failure_is_transport_error(monkeypatch):
    def boom(*args, **kwargs):
        raise httpx.ConnectError("name resolution failed")

    monkeypatch.setattr(httpx, "request", boom)

    with pytest.raises(TransportError, match="name resolution failed"):
        MidtransGateway(server_key="SB-key").get_status("UMC-1-1")


def test_midtrans_server_error_is_transport_error(monkeypatch):
    monkeypatch.setattr(httpx, "request", lambda *a, **k: httpx.Response(503, text="maintenance"))

    with pytest.raises(TransportError, match="503"):
        MidtransGateway(server_key="SB-key").get_status("UMC-1-1")


def test_midtrans_create_and_status(monkeypatch):
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs))
        if method == "POST":
            return httpx.Response(201, json={"token": "t", "redirect_url": "https://app.sandbox.midtrans.com/snap/v2/vtweb/t"})
        return httpx.Response(200, json={
            "transaction_status": "settlement",
            "settlement_time": "2025-01-02 17:00:00",
        })

    monkeypatch.setattr(httpx, "request", fake_request)
    gw = MidtransGateway(server_key="SB-key")

    created = gw.create_payment(GatewayPaymentRequest(amount=Decimal("200000.00"), order_ref="UMC-1-1", description="Booking #1"))
    status = gw.get_status("UMC-1-1")

    assert created.success and created.redirect_url.endswith("/t")
    assert calls[0][2]["json"]["transaction_details"] == {"order_id": "UMC-1-1", "gross_amount": 200000}
    assert calls[0][2]["auth"] == ("SB-key", "")
    assert status.payment_status == PaymentStatus.PAID
    assert status.is_settlement
    assert status.settled_at == utc(2025, 1, 2, 10)


def test_midtrans_business_refusal_is_not_transport(monkeypatch):
    monkeypatch.setattr(httpx, "request", lambda *a, **k: httpx.Response(
        401, json={"error_messages": ["Access denied"]},
    ))

    result = MidtransGateway(server_key="bad").create_payment(
        GatewayPaymentRequest(amount=Decimal("1000"), order_ref="X", description="x")
    )

    assert not result.success
    assert result.error_message == "Access denied"
