"""
Payment Service
=================
Creates gateway payments for CONFIRMED bookings and reconciles them by
pulling the gateway. The gateway-reported status always wins locally;
a settlement-equivalent raw status is only used to backfill paid_at.

Active gateway is selected via settings.PAYMENT_GATEWAY.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError

from config.settings import BASE_URL, PAYMENT_GATEWAY, PAYMENT_HINT_TTL_SECONDS
from common.exceptions import (
    AuthorizationError, ConflictError, NotFoundError, PaymentAlreadyExistsError,
    PaymentError, ValidationError,
)
from common.helpers import now_utc, parse_amount
from common.hints import HintCache
from common.result import as_result
from modules.booking.models import Booking, BookingStatus
from modules.booking.service import booking_service
from modules.notification.models import NotificationType
from modules.notification.service import notification_service
from modules.payment.models import BLOCKING_STATUSES, Payment, PaymentMethod, PaymentStatus
from modules.user.models import Actor

# Import gateway modules to trigger register_gateway() calls
from modules.payment.gateways import get_gateway, GatewayPaymentRequest
import modules.payment.gateways.midtrans  # noqa: F401

logger = logging.getLogger("umc.payment")


@dataclass
class PaymentStatusView:
    payment: Payment
    payment_status: PaymentStatus
    gateway_status: Optional[str]


@dataclass
class BookingPaymentSummary:
    booking_id: int
    booking_status: str
    total_amount: Decimal
    paid_total: Decimal
    latest_status: Optional[str]
    payment_count: int


def parse_payment_status(value: str) -> PaymentStatus:
    try:
        return PaymentStatus(value.upper())
    except ValueError:
        raise ValidationError(f"Status pembayaran tidak dikenal: {value}")


class PaymentService:

    def __init__(self, gateway_name: str = PAYMENT_GATEWAY, hint_ttl: float = PAYMENT_HINT_TTL_SECONDS):
        self.gateway_name = gateway_name
        # booking_id -> whether the "pay" action should be shown
        self.pay_hints = HintCache(hint_ttl)

    # ==========================================
    # Create
    # ==========================================

    @as_result
    def create_payment(
        self, db: Session, booking_id: int, actor: Actor, method: PaymentMethod = PaymentMethod.TRANSFER,
    ) -> Payment:
        """
        Open a gateway payment for a CONFIRMED booking.
        A PENDING or PAID payment already on the booking raises
        PaymentAlreadyExistsError: callers hide the pay action.
        """
        booking = booking_service.find(db, booking_id)
        if not actor.is_admin and not actor.owns(booking.owner_id):
            raise AuthorizationError("Booking ini bukan milik Anda")
        if booking.status != BookingStatus.CONFIRMED:
            raise ConflictError(f"Booking berstatus {booking.status_label}, belum dapat dibayar")

        existing = self._open_payment(db, booking_id)
        if existing:
            self.pay_hints.put(booking_id, False)
            raise PaymentAlreadyExistsError(existing.id)

        gw = get_gateway(self.gateway_name)
        if not gw:
            raise PaymentError(f"Gateway {self.gateway_name} tidak tersedia")

        amount = parse_amount(booking.total_amount)
        payment = Payment(
            booking_id=booking.id,
            amount=amount,
            method=PaymentMethod(method).value,
            status=PaymentStatus.PENDING.value,
            gateway=gw.name,
        )
        db.add(payment)
        try:
            db.flush()  # get payment.id for the gateway order ref
        except IntegrityError:
            # A concurrent request opened a payment after the check above
            db.rollback()
            existing = self._open_payment(db, booking_id)
            self.pay_hints.put(booking_id, False)
            raise PaymentAlreadyExistsError(existing.id if existing else None)

        payment.gateway_ref = f"UMC-{booking.id}-{payment.id}"
        result = gw.create_payment(GatewayPaymentRequest(
            amount=amount,
            order_ref=payment.gateway_ref,
            description=f"Booking #{booking.id} UMC Media Hub",
            finish_url=f"{BASE_URL}/payments/{payment.id}",
            customer_id=booking.owner_id,
        ))
        if not result.success:
            logger.warning(f"Gateway {gw.name} refused booking #{booking.id}: {result.error_message}")
            db.delete(payment)
            db.flush()
            raise PaymentError(result.error_message or "Gateway menolak pembayaran")

        payment.payment_url = result.redirect_url
        db.flush()
        self.pay_hints.put(booking_id, False)
        logger.info(f"Payment #{payment.id} created for booking #{booking.id}: {amount} via {gw.name}")
        return payment

    # ==========================================
    # Reconcile (pull)
    # ==========================================

    @as_result
    def check_status(self, db: Session, payment_id: int, actor: Actor) -> PaymentStatusView:
        payment = self._visible_payment(db, payment_id, actor)

        gw = get_gateway(payment.gateway or self.gateway_name)
        if not gw:
            raise PaymentError(f"Gateway {payment.gateway} tidak tersedia")

        status = gw.get_status(payment.gateway_ref)
        if not status.success:
            logger.warning(f"Status check failed for payment #{payment.id}: {status.error_message}")
            raise PaymentError(status.error_message or "Status pembayaran tidak dapat diperiksa")

        old_status = payment.status
        payment.status = status.payment_status.value
        payment.gateway_status = status.gateway_status
        if payment.paid_at is None and status.is_settlement:
            payment.paid_at = status.settled_at or now_utc()
        db.flush()

        if old_status != payment.status:
            logger.info(f"Payment #{payment.id}: {old_status} -> {payment.status} (gateway: {status.gateway_status})")
            if payment.status == PaymentStatus.PAID:
                notification_service.send(
                    db, payment.booking.owner_id, NotificationType.PAYMENT,
                    title=f"Pembayaran booking #{payment.booking_id} diterima",
                    body=f"Pembayaran #{payment.id} telah lunas.",
                )
                db.flush()

        self.pay_hints.put(payment.booking_id, payment.status not in BLOCKING_STATUSES)
        return PaymentStatusView(
            payment=payment,
            payment_status=PaymentStatus(payment.status),
            gateway_status=status.gateway_status,
        )

    # ==========================================
    # Query
    # ==========================================

    @as_result
    def list_payments(self, db: Session, actor: Actor, status: Optional[str] = None) -> List[Payment]:
        q = db.query(Payment).join(Booking, Payment.booking_id == Booking.id)
        if not actor.is_admin:
            q = q.filter(Booking.owner_id == actor.id)
        if status:
            q = q.filter(Payment.status == parse_payment_status(status).value)
        return q.order_by(desc(Payment.id)).all()

    @as_result
    def get_payment(self, db: Session, payment_id: int, actor: Actor) -> Payment:
        return self._visible_payment(db, payment_id, actor)

    @as_result
    def booking_summary(self, db: Session, booking_id: int, actor: Actor) -> BookingPaymentSummary:
        if not actor.is_admin:
            raise AuthorizationError("Hanya admin yang dapat melihat ringkasan pembayaran")
        booking = booking_service.find(db, booking_id)
        payments = (
            db.query(Payment)
            .filter(Payment.booking_id == booking_id)
            .order_by(desc(Payment.id))
            .all()
        )
        paid_total = sum(
            (parse_amount(p.amount) for p in payments if p.status == PaymentStatus.PAID),
            Decimal("0"),
        )
        blocking = any(p.status in BLOCKING_STATUSES for p in payments)
        self.pay_hints.put(booking_id, not blocking)
        return BookingPaymentSummary(
            booking_id=booking.id,
            booking_status=booking.status,
            total_amount=parse_amount(booking.total_amount),
            paid_total=paid_total,
            latest_status=payments[0].status if payments else None,
            payment_count=len(payments),
        )

    def pay_action_hint(self, booking_id: int) -> Optional[bool]:
        """Last observed "show pay action" hint for a booking, or None if unknown/expired."""
        return self.pay_hints.get(booking_id)

    # ==========================================
    # Private helpers
    # ==========================================

    def _open_payment(self, db: Session, booking_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(
            Payment.booking_id == booking_id,
            Payment.status.in_(BLOCKING_STATUSES),
        ).order_by(desc(Payment.id)).first()

    def _visible_payment(self, db: Session, payment_id: int, actor: Actor) -> Payment:
        payment = db.query(Payment).filter(Payment.id == payment_id).first()
        if not payment:
            raise NotFoundError("Pembayaran tidak ditemukan")
        if not actor.is_admin and not actor.owns(payment.booking.owner_id):
            raise AuthorizationError("Pembayaran ini bukan milik Anda")
        return payment


# Singleton
payment_service = PaymentService()
