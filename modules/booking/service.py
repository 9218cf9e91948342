"""
Booking Module - Service Layer
===============================
Checkout (cart -> booking) and booking queries.
State transitions live in modules.booking.state_machine.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import desc

from common.exceptions import AuthorizationError, NotFoundError, ValidationError
from common.helpers import to_datetime
from common.result import as_result
from modules.booking.models import Booking, BookingItem, BookingStatus, BookingStatusLog, BookingType
from modules.cart.service import cart_service
from modules.catalog.models import ItemKind
from modules.notification.models import NotificationType
from modules.notification.service import notification_service
from modules.user.models import Actor

logger = logging.getLogger("umc.booking")


def booking_type_for(kinds) -> BookingType:
    kinds = {ItemKind(k) for k in kinds}
    if kinds == {ItemKind.ASSET}:
        return BookingType.ASSET
    if kinds == {ItemKind.SERVICE}:
        return BookingType.SERVICE
    return BookingType.MIXED


def parse_status(value: str) -> BookingStatus:
    try:
        return BookingStatus(value.upper())
    except ValueError:
        raise ValidationError(f"Status booking tidak dikenal: {value}")


class BookingService:

    # ==========================================
    # Checkout
    # ==========================================

    @as_result
    def checkout(self, db: Session, owner_id: int, start_date, end_date, notes: Optional[str] = None) -> Booking:
        """
        Create one WAITING booking from the owner's whole cart:
        1. Validate the date range and that the cart is not empty
        2. Project each cart line 1:1 into a BookingItem (unit price as captured in the cart)
        3. Sum subtotals into total_amount
        4. Empty the cart in the same unit of work

        Either the booking exists and the cart is empty, or nothing changed.
        """
        start = to_datetime(start_date, "Tanggal mulai")
        end = to_datetime(end_date, "Tanggal selesai")
        if start > end:
            raise ValidationError("Tanggal mulai harus sebelum tanggal selesai")

        lines = cart_service.lines(db, owner_id)
        if not lines:
            raise ValidationError("Keranjang kosong")

        try:
            booking = Booking(
                owner_id=owner_id,
                type=booking_type_for(line.kind for line in lines).value,
                status=BookingStatus.WAITING.value,
                start_date=start,
                end_date=end,
                notes=notes or None,
                total_amount=Decimal("0"),
            )

            total = Decimal("0")
            for line in lines:
                subtotal = line.unit_price * line.quantity
                booking.items.append(BookingItem(
                    item_type=line.kind,
                    ref_id=line.product_id,
                    package_id=line.package_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    subtotal=subtotal,
                ))
                total += subtotal
            booking.total_amount = total

            db.add(booking)
            db.flush()  # get booking.id

            db.add(BookingStatusLog(
                booking_id=booking.id,
                old_status=None,
                new_status=BookingStatus.WAITING.value,
                changed_by=owner_id,
                description="Booking dibuat dari keranjang",
            ))
            cart_service.delete_all(db, owner_id)
            notification_service.send(
                db, owner_id, NotificationType.BOOKING,
                title=f"Booking #{booking.id} dibuat",
                body="Booking Anda menunggu konfirmasi admin.",
            )
            db.flush()
        except Exception:
            db.rollback()
            raise

        cart_service.emit(owner_id, "checkout")
        logger.info(f"Booking #{booking.id} created by user #{owner_id}: {len(lines)} items, total {total}")
        return booking

    # ==========================================
    # Query
    # ==========================================

    @as_result
    def get_booking(self, db: Session, booking_id: int, actor: Actor) -> Booking:
        booking = self.find(db, booking_id)
        if not actor.is_admin and not actor.owns(booking.owner_id):
            raise AuthorizationError("Booking ini bukan milik Anda")
        return booking

    @as_result
    def list_for_owner(self, db: Session, owner_id: int, status: Optional[str] = None) -> List[Booking]:
        q = db.query(Booking).filter(Booking.owner_id == owner_id)
        if status:
            q = q.filter(Booking.status == parse_status(status).value)
        return q.order_by(desc(Booking.created_at), desc(Booking.id)).all()

    @as_result
    def list_all(self, db: Session, actor: Actor, status: Optional[str] = None) -> List[Booking]:
        if not actor.is_admin:
            raise AuthorizationError("Hanya admin yang dapat melihat semua booking")
        q = db.query(Booking)
        if status:
            q = q.filter(Booking.status == parse_status(status).value)
        return q.order_by(desc(Booking.id)).all()

    def find(self, db: Session, booking_id: int) -> Booking:
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking tidak ditemukan")
        return booking


# Singleton
booking_service = BookingService()
