"""
Loan Module - Service Layer
=============================
Builds LoanRecords for ASSET items of CONFIRMED / COMPLETED bookings and
recomputes their status against the clock on every load.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import func

from config.settings import MAX_EXTENSION_DAYS
from common.exceptions import AuthorizationError, NotFoundError, ValidationError
from common.helpers import as_utc, now_utc
from common.result import as_result
from modules.booking.models import Booking, BookingItem, BookingStatus
from modules.catalog.models import ItemKind
from modules.loan import computer
from modules.loan.computer import LoanRecord, LoanStatus
from modules.loan.models import LoanExtension
from modules.returns.models import Return
from modules.user.models import Actor

logger = logging.getLogger("umc.loan")

LOAN_BOOKING_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


def parse_loan_status(value: str) -> LoanStatus:
    try:
        return LoanStatus(value.upper())
    except ValueError:
        raise ValidationError(f"Status peminjaman tidak dikenal: {value}")


class LoanService:

    def __init__(self, clock: Callable[[], datetime] = now_utc):
        self.clock = clock

    # ==========================================
    # Query
    # ==========================================

    @as_result
    def list_loans(self, db: Session, actor: Actor, status: Optional[str] = None) -> List[LoanRecord]:
        wanted = parse_loan_status(status) if status else None

        q = (
            db.query(BookingItem, Booking)
            .join(Booking, BookingItem.booking_id == Booking.id)
            .filter(
                BookingItem.item_type == ItemKind.ASSET.value,
                Booking.status.in_(LOAN_BOOKING_STATUSES),
            )
        )
        if not actor.is_admin:
            q = q.filter(Booking.owner_id == actor.id)
        rows = q.order_by(Booking.start_date, BookingItem.id).all()

        item_ids = [item.id for item, _ in rows]
        extensions = self._extension_days(db, item_ids)
        returns = self._returns(db, item_ids)

        now = self.clock()
        records = []
        for item, booking in rows:
            record = computer.evaluate(self._build(item, booking, extensions, returns), now)
            if wanted is None or record.status == wanted:
                records.append(record)
        return records

    @as_result
    def get_loan(self, db: Session, booking_item_id: int, actor: Actor) -> LoanRecord:
        item, booking = self._loan_row(db, booking_item_id, actor)
        extensions = self._extension_days(db, [item.id])
        returns = self._returns(db, [item.id])
        return computer.evaluate(self._build(item, booking, extensions, returns), self.clock())

    # ==========================================
    # Extend
    # ==========================================

    @as_result
    def extend(self, db: Session, booking_item_id: int, days: int, actor: Actor,
               reason: Optional[str] = None) -> LoanRecord:
        """
        Record an extension and return the record as it reads right after:
        due date moved by `days`, status ONGOING.
        """
        if isinstance(days, int) and days > MAX_EXTENSION_DAYS:
            raise ValidationError(f"Perpanjangan maksimal {MAX_EXTENSION_DAYS} hari")

        item, booking = self._loan_row(db, booking_item_id, actor)
        extensions = self._extension_days(db, [item.id])
        returns = self._returns(db, [item.id])
        current = computer.evaluate(self._build(item, booking, extensions, returns), self.clock())

        extended = computer.extend(current, days)

        db.add(LoanExtension(
            booking_item_id=item.id,
            days=days,
            reason=reason or None,
            created_by=actor.id,
        ))
        db.flush()
        logger.info(
            f"Loan item #{item.id} (booking #{booking.id}) extended {days}d by user #{actor.id}: "
            f"due {extended.due_date.date()}"
        )
        return extended

    # ==========================================
    # Private helpers
    # ==========================================

    def _loan_row(self, db: Session, booking_item_id: int, actor: Actor):
        row = (
            db.query(BookingItem, Booking)
            .join(Booking, BookingItem.booking_id == Booking.id)
            .filter(BookingItem.id == booking_item_id)
            .first()
        )
        if not row:
            raise NotFoundError("Item peminjaman tidak ditemukan")
        item, booking = row
        if item.item_type != ItemKind.ASSET or booking.status not in LOAN_BOOKING_STATUSES:
            raise NotFoundError("Item ini bukan peminjaman aktif")
        if not actor.is_admin and not actor.owns(booking.owner_id):
            raise AuthorizationError("Peminjaman ini bukan milik Anda")
        return item, booking

    def _extension_days(self, db: Session, item_ids: List[int]) -> Dict[int, int]:
        if not item_ids:
            return {}
        rows = (
            db.query(LoanExtension.booking_item_id, func.sum(LoanExtension.days))
            .filter(LoanExtension.booking_item_id.in_(item_ids))
            .group_by(LoanExtension.booking_item_id)
            .all()
        )
        return {item_id: int(total or 0) for item_id, total in rows}

    def _returns(self, db: Session, item_ids: List[int]) -> Dict[int, Return]:
        if not item_ids:
            return {}
        rows = db.query(Return).filter(Return.booking_item_id.in_(item_ids)).all()
        return {ret.booking_item_id: ret for ret in rows}

    def _build(self, item: BookingItem, booking: Booking, extensions: Dict[int, int],
               returns: Dict[int, Return]) -> LoanRecord:
        ret = returns.get(item.id)
        return LoanRecord(
            booking_id=booking.id,
            booking_item_id=item.id,
            name=item.name,
            quantity=item.quantity,
            start_date=as_utc(booking.start_date),
            due_date=computer.due_date_for(booking.end_date, [extensions.get(item.id, 0)]),
            returned_at=as_utc(ret.returned_at) if ret is not None else None,
            owner_id=booking.owner_id,
        )


# Singleton
loan_service = LoanService()
