import pytest

from common.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from modules.catalog.models import ItemKind
from modules.loan import computer
from modules.loan.computer import LoanRecord, LoanStatus
from modules.loan.service import loan_service
from modules.returns.service import return_service

from conftest import complete, confirm, make_booking, utc


def _record(**overrides):
    fields = dict(
        booking_id=1, booking_item_id=1, name="Sony A7 III", quantity=1,
        start_date=utc(2025, 1, 1), due_date=utc(2025, 1, 3),
    )
    fields.update(overrides)
    return LoanRecord(**fields)


def _asset_item(booking):
    return next(it for it in booking.items if it.item_type == ItemKind.ASSET)


@pytest.fixture
def clock(monkeypatch):
    """Settable clock for loan_service."""
    current = {"now": utc(2025, 1, 2)}
    monkeypatch.setattr(loan_service, "clock", lambda: current["now"])
    return current


# ==========================================
# Status computer
# ==========================================

def test_status_derivation():
    record = _record()

    assert computer.status(record, utc(2025, 1, 2)) == LoanStatus.ONGOING
    assert computer.status(record, utc(2025, 1, 3)) == LoanStatus.ONGOING
    assert computer.status(record, utc(2025, 1, 3, 0, 1)) == LoanStatus.OVERDUE
    assert computer.status(_record(returned_at=utc(2025, 1, 9)), utc(2025, 1, 10)) == LoanStatus.RETURNED


def test_extend_moves_due_date_and_clears_overdue():
    overdue = computer.evaluate(_record(), utc(2025, 1, 5))
    assert overdue.status == LoanStatus.OVERDUE

    extended = computer.extend(overdue, 3)

    assert extended.due_date == utc(2025, 1, 6)
    assert extended.status == LoanStatus.ONGOING
    assert overdue.due_date == utc(2025, 1, 3)
    assert computer.evaluate(extended, utc(2025, 1, 7)).status == LoanStatus.OVERDUE


@pytest.mark.parametrize("days", [0, -2, 1.5, "3", True])
def test_extend_rejects_bad_days(days):
    with pytest.raises(ValidationError):
        computer.extend(_record(), days)


def test_returned_loan_cannot_be_extended():
    with pytest.raises(ConflictError):
        computer.extend(_record(returned_at=utc(2025, 1, 2)), 2)


def test_overdue_days_counts_started_days():
    record = _record()

    assert computer.overdue_days(record, utc(2025, 1, 2)) == 0
    assert computer.overdue_days(record, utc(2025, 1, 3, 6)) == 1
    assert computer.overdue_days(record, utc(2025, 1, 5)) == 2
    assert computer.overdue_days(_record(returned_at=utc(2025, 1, 4)), utc(2025, 2, 1)) == 1


# ==========================================
# Service
# ==========================================

def test_loans_cover_asset_items_of_confirmed_bookings(db, catalog, borrower, admin, clock):
    waiting = make_booking(db, catalog)
    assert loan_service.list_loans(db, borrower).value == []

    confirm(db, waiting, admin)
    loans = loan_service.list_loans(db, borrower).value

    assert len(loans) == 1
    assert loans[0].name == "Sony A7 III"
    assert loans[0].quantity == 2
    assert loans[0].status == LoanStatus.ONGOING


def test_status_is_recomputed_on_every_read(db, catalog, borrower, admin, clock):
    booking = confirm(db, make_booking(db, catalog), admin)

    clock["now"] = utc(2025, 1, 5)
    assert [r.status for r in loan_service.list_loans(db, borrower).value] == [LoanStatus.OVERDUE]
    assert loan_service.list_loans(db, borrower, "ongoing").value == []

    item = _asset_item(booking)
    extended = loan_service.extend(db, item.id, 3, borrower, "Acara diperpanjang").value
    db.commit()
    assert extended.status == LoanStatus.ONGOING
    assert extended.due_date == utc(2025, 1, 6)
    assert loan_service.get_loan(db, item.id, borrower).value.status == LoanStatus.ONGOING

    clock["now"] = utc(2025, 1, 7)
    assert loan_service.get_loan(db, item.id, borrower).value.status == LoanStatus.OVERDUE


def test_returned_item_reads_returned(db, catalog, borrower, admin, clock):
    booking = complete(db, confirm(db, make_booking(db, catalog), admin), admin)
    item = _asset_item(booking)
    return_service.process_return(db, item.id, "GOOD", admin, returned_at="2025-01-03T08:00:00+00:00")
    db.commit()

    clock["now"] = utc(2025, 2, 1)
    record = loan_service.get_loan(db, item.id, borrower).value

    assert record.status == LoanStatus.RETURNED
    assert isinstance(loan_service.extend(db, item.id, 1, borrower).error, ConflictError)


def test_extend_limits_and_access(db, catalog, borrower, other_borrower, admin, clock):
    booking = confirm(db, make_booking(db, catalog), admin)
    item = _asset_item(booking)
    service_item = next(it for it in booking.items if it.item_type == ItemKind.SERVICE)

    assert isinstance(loan_service.extend(db, item.id, 31, borrower).error, ValidationError)
    assert isinstance(loan_service.extend(db, item.id, 0, borrower).error, ValidationError)
    assert isinstance(loan_service.extend(db, item.id, 2, other_borrower).error, AuthorizationError)
    assert isinstance(loan_service.extend(db, service_item.id, 2, admin).error, NotFoundError)
    assert loan_service.extend(db, item.id, 2, admin).success


def test_borrower_sees_only_own_loans(db, catalog, borrower, other_borrower, admin, clock):
    confirm(db, make_booking(db, catalog), admin)
    confirm(db, make_booking(db, catalog, owner_id=other_borrower.id), admin)

    assert len(loan_service.list_loans(db, borrower).value) == 1
    assert len(loan_service.list_loans(db, admin).value) == 2
    assert isinstance(loan_service.list_loans(db, admin, "DIPINJAM").error, ValidationError)
