"""
Loan Routes
=============
Loans are recomputed on every request; OVERDUE is never stored.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import iso
from common.result import unwrap
from modules.auth.deps import require_login
from modules.loan import computer
from modules.loan.computer import LoanRecord
from modules.loan.service import loan_service

router = APIRouter(prefix="/loans", tags=["loans"])


class ExtendRequest(BaseModel):
    days: int
    reason: Optional[str] = None


def loan_dict(record: LoanRecord) -> dict:
    return {
        "bookingId": record.booking_id,
        "bookingItemId": record.booking_item_id,
        "name": record.name,
        "quantity": record.quantity,
        "startDate": iso(record.start_date),
        "dueDate": iso(record.due_date),
        "returnedAt": iso(record.returned_at),
        "status": record.status.value,
        "statusLabel": record.status_label,
        "overdueDays": computer.overdue_days(record, loan_service.clock()),
    }


@router.get("")
async def list_loans(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    records = unwrap(loan_service.list_loans(db, me, status))
    return {"items": [loan_dict(r) for r in records], "total": len(records)}


@router.patch("/{booking_item_id}/extend")
async def extend_loan(
    booking_item_id: int,
    body: ExtendRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    record = unwrap(loan_service.extend(db, booking_item_id, body.days, me, reason=body.reason), db)
    return {"message": f"Peminjaman diperpanjang {body.days} hari", "loan": loan_dict(record)}
