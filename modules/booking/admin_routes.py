"""
Booking Module - Admin Routes
===============================
All bookings, approve / reject / complete.
Included before the borrower router so /bookings/admin/* wins over /bookings/{id}.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from common.result import unwrap
from modules.auth.deps import require_admin
from modules.booking.routes import booking_dict
from modules.booking.service import booking_service
from modules.booking.state_machine import booking_state_machine

router = APIRouter(prefix="/bookings", tags=["bookings-admin"])


class RejectRequest(BaseModel):
    reason: Optional[str] = None


@router.get("/admin/all")
async def list_all_bookings(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    bookings = unwrap(booking_service.list_all(db, admin, status))
    return {"items": [booking_dict(b) for b in bookings], "total": len(bookings)}


@router.patch("/{booking_id}/approve")
async def approve_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    booking = unwrap(booking_state_machine.approve(db, booking_id, admin), db)
    return {"message": f"Booking #{booking.id} dikonfirmasi", "booking": booking_dict(booking)}


@router.patch("/{booking_id}/reject")
async def reject_booking(
    booking_id: int,
    body: Optional[RejectRequest] = None,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    reason = body.reason if body else None
    booking = unwrap(booking_state_machine.reject(db, booking_id, admin, reason), db)
    return {"message": f"Booking #{booking.id} ditolak", "booking": booking_dict(booking)}


@router.patch("/{booking_id}/complete")
async def complete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    booking = unwrap(booking_state_machine.complete(db, booking_id, admin), db)
    return {"message": f"Booking #{booking.id} selesai", "booking": booking_dict(booking)}
