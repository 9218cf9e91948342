"""
Returns Module - Service Layer
================================
Return processing and fines.

process_return records the Return and, for any condition other than GOOD,
hands back a FineProposal on the starting schedule. The proposal is NOT
persisted: the admin edits it and calls create_fine.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError

from config.settings import FINE_MINOR_DAMAGE, FINE_MAJOR_DAMAGE, FINE_LOST
from common.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from common.helpers import format_rupiah, now_utc, parse_amount, to_datetime
from common.result import as_result
from modules.booking.models import Booking, BookingItem, BookingStatus
from modules.catalog.models import ItemKind
from modules.notification.models import NotificationType
from modules.notification.service import notification_service
from modules.returns.models import Condition, Fine, FineType, Return
from modules.user.models import Actor

logger = logging.getLogger("umc.returns")


FINE_SCHEDULE = {
    Condition.MINOR_DAMAGE: (FineType.DAMAGE, FINE_MINOR_DAMAGE),
    Condition.MAJOR_DAMAGE: (FineType.DAMAGE, FINE_MAJOR_DAMAGE),
    Condition.LOST: (FineType.LOSS, FINE_LOST),
}


@dataclass
class FineProposal:
    booking_id: int
    return_id: int
    type: FineType
    amount: Decimal
    notes: str


def propose_fine(ret: Return, booking_id: int, item_name: str = "") -> Optional[FineProposal]:
    """Starting fine for a non-GOOD return, or None."""
    condition = Condition(ret.condition)
    if condition == Condition.GOOD:
        return None
    fine_type, amount = FINE_SCHEDULE[condition]
    label = ret.condition_label
    return FineProposal(
        booking_id=booking_id,
        return_id=ret.id,
        type=fine_type,
        amount=amount,
        notes=f"{item_name} - {label}" if item_name else label,
    )


def parse_condition(value) -> Condition:
    try:
        return Condition(str(getattr(value, "value", value)).upper())
    except ValueError:
        raise ValidationError(f"Kondisi tidak dikenal: {value}")


class ReturnService:

    # ==========================================
    # Returns
    # ==========================================

    @as_result
    def process_return(
        self,
        db: Session,
        booking_item_id: int,
        condition,
        actor: Actor,
        notes: Optional[str] = None,
        returned_at=None,
    ) -> Tuple[Return, Optional[FineProposal]]:
        """
        Record the return of one ASSET item of a COMPLETED booking.
        A second return for the same item raises ConflictError.
        """
        self._require_admin(actor)
        condition = parse_condition(condition)

        item = db.query(BookingItem).filter(BookingItem.id == booking_item_id).first()
        if not item:
            raise NotFoundError("Item booking tidak ditemukan")
        if item.item_type != ItemKind.ASSET:
            raise ValidationError("Hanya aset fisik yang dapat dikembalikan")

        booking = item.booking
        if booking.status != BookingStatus.COMPLETED:
            raise ConflictError(f"Booking berstatus {booking.status_label}, pengembalian belum dapat diproses")

        if db.query(Return.id).filter(Return.booking_item_id == item.id).first():
            raise ConflictError("Item ini sudah dikembalikan")

        ret = Return(
            booking_item_id=item.id,
            returned_at=to_datetime(returned_at, "Tanggal kembali") if returned_at else now_utc(),
            condition=condition.value,
            notes=notes or None,
            verified_by=actor.id,
        )
        db.add(ret)
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError("Item ini sudah dikembalikan")

        proposal = propose_fine(ret, booking.id, item.name)

        notification_service.send(
            db, booking.owner_id, NotificationType.RETURN,
            title=f"Pengembalian {item.name} tercatat",
            body=f"Kondisi: {ret.condition_label}",
        )
        db.flush()
        logger.info(
            f"Return #{ret.id}: item #{item.id} (booking #{booking.id}) {condition.value}"
            + (f", proposed fine {proposal.amount}" if proposal else "")
        )
        return ret, proposal

    @as_result
    def list_returns(self, db: Session, actor: Actor) -> List[Return]:
        q = db.query(Return).join(BookingItem, Return.booking_item_id == BookingItem.id)
        if not actor.is_admin:
            q = q.join(Booking, BookingItem.booking_id == Booking.id).filter(Booking.owner_id == actor.id)
        return q.order_by(desc(Return.id)).all()

    # ==========================================
    # Fines
    # ==========================================

    @as_result
    def create_fine(
        self,
        db: Session,
        booking_id: int,
        amount,
        actor: Actor,
        fine_type: FineType = FineType.DAMAGE,
        notes: Optional[str] = None,
        return_id: Optional[int] = None,
    ) -> Fine:
        """Persist an (edited) fine. The amount arrives as a decimal string."""
        self._require_admin(actor)
        amount = parse_amount(amount)
        if amount <= 0:
            raise ValidationError("Jumlah denda harus lebih dari 0")
        try:
            fine_type = FineType(str(getattr(fine_type, "value", fine_type)).upper())
        except ValueError:
            raise ValidationError(f"Jenis denda tidak dikenal: {fine_type}")

        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFoundError("Booking tidak ditemukan")

        if return_id is not None:
            ret = db.query(Return).filter(Return.id == return_id).first()
            if not ret or ret.booking_item.booking_id != booking.id:
                raise NotFoundError("Data pengembalian tidak ditemukan untuk booking ini")

        fine = Fine(
            booking_id=booking.id,
            return_id=return_id,
            type=fine_type.value,
            amount=amount,
            notes=notes or None,
            paid=False,
            created_by=actor.id,
        )
        db.add(fine)
        db.flush()

        notification_service.send(
            db, booking.owner_id, NotificationType.RETURN,
            title=f"Denda booking #{booking.id}",
            body=f"Anda dikenakan denda {format_rupiah(amount)}." + (f" {notes}" if notes else ""),
        )
        db.flush()
        logger.info(f"Fine #{fine.id} created for booking #{booking.id}: {fine_type.value} {amount}")
        return fine

    @as_result
    def mark_fine_paid(self, db: Session, fine_id: int, actor: Actor) -> Fine:
        self._require_admin(actor)
        fine = db.query(Fine).filter(Fine.id == fine_id).first()
        if not fine:
            raise NotFoundError("Denda tidak ditemukan")

        updated = db.query(Fine).filter(
            Fine.id == fine_id,
            Fine.paid == False,  # noqa: E712
        ).update({"paid": True, "paid_at": now_utc()}, synchronize_session=False)
        db.refresh(fine)
        if not updated:
            raise ConflictError("Denda sudah dibayar")

        logger.info(f"Fine #{fine.id} marked paid by user #{actor.id}")
        return fine

    @as_result
    def list_fines(self, db: Session, actor: Actor, paid: Optional[bool] = None) -> List[Fine]:
        q = db.query(Fine).join(Booking, Fine.booking_id == Booking.id)
        if not actor.is_admin:
            q = q.filter(Booking.owner_id == actor.id)
        if paid is not None:
            q = q.filter(Fine.paid == paid)
        return q.order_by(desc(Fine.id)).all()

    # ==========================================
    # Private helpers
    # ==========================================

    def _require_admin(self, actor: Actor):
        if not actor.is_admin:
            raise AuthorizationError("Hanya admin yang dapat melakukan aksi ini")


# Singleton
return_service = ReturnService()
