"""
Loan Module - Status Computer
===============================
Pure derivation of a loan's status from its due date, an optional return
and the current time. Nothing here touches the database; OVERDUE is never
stored, it is recomputed on every read.
"""

import enum
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional

from common.exceptions import ConflictError, ValidationError
from common.helpers import add_days, as_utc


class LoanStatus(str, enum.Enum):
    ONGOING = "ONGOING"      # DIPINJAM
    OVERDUE = "OVERDUE"      # TERLAMBAT
    RETURNED = "RETURNED"    # DIKEMBALIKAN


LOAN_STATUS_LABELS = {
    LoanStatus.ONGOING: "Dipinjam",
    LoanStatus.OVERDUE: "Terlambat",
    LoanStatus.RETURNED: "Dikembalikan",
}


@dataclass(frozen=True)
class LoanRecord:
    booking_id: int
    booking_item_id: int
    name: str
    quantity: int
    start_date: datetime
    due_date: datetime
    status: LoanStatus = LoanStatus.ONGOING
    returned_at: Optional[datetime] = None
    owner_id: Optional[int] = None

    @property
    def status_label(self) -> str:
        return LOAN_STATUS_LABELS[self.status]


def due_date_for(end_date: datetime, extension_days: Iterable[int] = ()) -> datetime:
    """Booking end date shifted by every recorded extension."""
    return add_days(as_utc(end_date), sum(extension_days))


def status(record: LoanRecord, now: datetime) -> LoanStatus:
    if record.returned_at is not None:
        return LoanStatus.RETURNED
    if as_utc(now) > as_utc(record.due_date):
        return LoanStatus.OVERDUE
    return LoanStatus.ONGOING


def evaluate(record: LoanRecord, now: datetime) -> LoanRecord:
    """Return the record with its status recomputed against `now`."""
    return replace(record, status=status(record, now))


def extend(record: LoanRecord, days: int) -> LoanRecord:
    """
    Push the due date back by `days`. An OVERDUE record reads ONGOING
    immediately afterwards; the next evaluate() recomputes from the clock.
    """
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise ValidationError("Jumlah hari perpanjangan minimal 1")
    if record.returned_at is not None or record.status == LoanStatus.RETURNED:
        raise ConflictError("Barang sudah dikembalikan, tidak dapat diperpanjang")
    return replace(record, due_date=add_days(as_utc(record.due_date), days), status=LoanStatus.ONGOING)


def overdue_days(record: LoanRecord, now: datetime) -> int:
    """Whole days past due, counting a started day as a full one. 0 when not overdue."""
    end = as_utc(record.returned_at) if record.returned_at is not None else as_utc(now)
    late = (end - as_utc(record.due_date)).total_seconds()
    if late <= 0:
        return 0
    return math.ceil(late / 86400)
