"""
Booking Module - Borrower Routes
==================================
Checkout, own bookings, cancel and hard delete (while WAITING).
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import money, iso
from common.result import unwrap
from modules.auth.deps import require_login
from modules.booking.models import Booking
from modules.booking.service import booking_service
from modules.booking.state_machine import booking_state_machine
from modules.payment.service import payment_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


# ==========================================
# Schemas
# ==========================================

class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    notes: Optional[str] = None


# ==========================================
# Serializers
# ==========================================

def booking_item_dict(item) -> dict:
    return {
        "id": item.id,
        "itemType": item.item_type,
        "refId": item.ref_id,
        "packageId": item.package_id,
        "name": item.name,
        "quantity": item.quantity,
        "unitPrice": money(item.unit_price),
        "subtotal": money(item.subtotal),
    }


def booking_dict(booking: Booking, with_logs: bool = False) -> dict:
    data = {
        "id": booking.id,
        "ownerId": booking.owner_id,
        "type": booking.type,
        "status": booking.status,
        "statusLabel": booking.status_label,
        "startDate": iso(booking.start_date),
        "endDate": iso(booking.end_date),
        "notes": booking.notes,
        "totalAmount": money(booking.total_amount),
        "rejectReason": booking.reject_reason,
        "createdAt": iso(booking.created_at),
        "approvedAt": iso(booking.approved_at),
        "completedAt": iso(booking.completed_at),
        "items": [booking_item_dict(it) for it in booking.items],
        "payActionHint": payment_service.pay_action_hint(booking.id),
    }
    if with_logs:
        data["statusLogs"] = [
            {
                "oldStatus": log.old_status,
                "newStatus": log.new_status,
                "changedBy": log.changed_by,
                "description": log.description,
                "createdAt": iso(log.created_at),
            }
            for log in booking.status_logs
        ]
    return data


# ==========================================
# Checkout
# ==========================================

@router.post("/checkout", status_code=201)
async def checkout(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    booking = unwrap(booking_service.checkout(db, me.id, body.start_date, body.end_date, body.notes), db)
    db.refresh(booking)
    return {
        "message": f"Booking #{booking.id} berhasil dibuat",
        "booking": booking_dict(booking),
    }


# ==========================================
# Own bookings
# ==========================================

@router.get("")
async def list_my_bookings(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    bookings = unwrap(booking_service.list_for_owner(db, me.id, status))
    return {"items": [booking_dict(b) for b in bookings], "total": len(bookings)}


@router.get("/{booking_id}")
async def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    booking = unwrap(booking_service.get_booking(db, booking_id, me))
    return booking_dict(booking, with_logs=True)


# ==========================================
# Owner transitions
# ==========================================

@router.patch("/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    booking = unwrap(booking_state_machine.cancel(db, booking_id, me), db)
    return {"message": f"Booking #{booking.id} dibatalkan", "booking": booking_dict(booking)}


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    deleted_id = unwrap(booking_state_machine.delete(db, booking_id, me), db)
    return {"message": f"Booking #{deleted_id} dihapus", "id": deleted_id}
