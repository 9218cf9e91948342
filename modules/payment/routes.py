"""
Payment Routes
================
Create gateway payment, pull status, list, admin per-booking summary.

A 409 with code PAYMENT_EXISTS means a pending or paid payment already
exists: clients hide the pay action instead of showing an error.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import money, iso
from common.result import unwrap
from modules.auth.deps import require_login, require_admin
from modules.payment.models import Payment, PaymentMethod
from modules.payment.service import payment_service

router = APIRouter(prefix="/payments", tags=["payments"])


class CreatePaymentRequest(BaseModel):
    method: PaymentMethod = PaymentMethod.TRANSFER


def payment_dict(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "bookingId": payment.booking_id,
        "amount": money(payment.amount),
        "method": payment.method,
        "status": payment.status,
        "statusLabel": payment.status_label,
        "gatewayStatus": payment.gateway_status,
        "paymentUrl": payment.payment_url,
        "proofUrl": payment.proof_url,
        "paidAt": iso(payment.paid_at),
        "createdAt": iso(payment.created_at),
    }


# ==========================================
# Create (redirect URL to the hosted checkout)
# ==========================================

@router.post("/create/{booking_id}", status_code=201)
async def create_payment(
    booking_id: int,
    body: Optional[CreatePaymentRequest] = None,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    method = body.method if body else PaymentMethod.TRANSFER
    payment = unwrap(payment_service.create_payment(db, booking_id, me, method=method), db)
    return {"paymentId": payment.id, "paymentUrl": payment.payment_url}


# ==========================================
# Admin
# ==========================================

@router.get("/admin/by-booking/{booking_id}")
async def payment_summary_for_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    summary = unwrap(payment_service.booking_summary(db, booking_id, admin))
    return {
        "bookingId": summary.booking_id,
        "bookingStatus": summary.booking_status,
        "totalAmount": money(summary.total_amount),
        "paidTotal": money(summary.paid_total),
        "latestStatus": summary.latest_status,
        "paymentCount": summary.payment_count,
    }


# ==========================================
# Query / reconcile
# ==========================================

@router.get("")
async def list_payments(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    payments = unwrap(payment_service.list_payments(db, me, status))
    return {"items": [payment_dict(p) for p in payments], "total": len(payments)}


@router.get("/{payment_id}")
async def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    return payment_dict(unwrap(payment_service.get_payment(db, payment_id, me)))


@router.get("/{payment_id}/status")
async def check_payment_status(
    payment_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    view = unwrap(payment_service.check_status(db, payment_id, me), db)
    return {
        "paymentStatus": view.payment_status.value,
        "gatewayStatus": view.gateway_status,
        "paidAt": iso(view.payment.paid_at),
    }
