"""
Booking Module - State Machine
================================
WAITING -> CONFIRMED | REJECTED | CANCELLED, CONFIRMED -> COMPLETED.

Every transition is a status-conditional UPDATE followed by a re-read.
If the row is no longer in the expected source state the transition fails
with ConflictError, so two racing admins cannot both move one booking.
"""

import logging
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from common.exceptions import AuthorizationError, ConflictError
from common.helpers import now_utc
from common.result import as_result
from modules.booking.models import Booking, BookingItem, BookingStatus, BookingStatusLog
from modules.booking.service import booking_service
from modules.notification.models import NotificationType
from modules.notification.service import notification_service
from modules.payment.models import Payment, PaymentStatus
from modules.user.models import Actor

logger = logging.getLogger("umc.booking")


TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.WAITING: frozenset({
        BookingStatus.CONFIRMED, BookingStatus.REJECTED, BookingStatus.CANCELLED,
    }),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED}),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
}

_NOTIFY_TEXT = {
    BookingStatus.CONFIRMED: ("dikonfirmasi", "Silakan lanjutkan pembayaran."),
    BookingStatus.REJECTED: ("ditolak", None),
    BookingStatus.CANCELLED: ("dibatalkan", None),
    BookingStatus.COMPLETED: ("selesai", "Terima kasih, Anda dapat memberikan ulasan."),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in TRANSITIONS.get(BookingStatus(current), frozenset())


class BookingStateMachine:

    # ==========================================
    # Transitions
    # ==========================================

    @as_result
    def approve(self, db: Session, booking_id: int, actor: Actor) -> Booking:
        self._require_admin(actor)
        now = now_utc()
        return self._transition(
            db, booking_id, BookingStatus.WAITING, BookingStatus.CONFIRMED, actor,
            values={"approved_by": actor.id, "approved_at": now},
        )

    @as_result
    def reject(self, db: Session, booking_id: int, actor: Actor, reason: Optional[str] = None) -> Booking:
        self._require_admin(actor)
        reason = (reason or "").strip() or None
        return self._transition(
            db, booking_id, BookingStatus.WAITING, BookingStatus.REJECTED, actor,
            values={"rejection_reason": reason, "rejected_at": now_utc()},
            description=reason,
        )

    @as_result
    def cancel(self, db: Session, booking_id: int, actor: Actor) -> Booking:
        booking = booking_service.find(db, booking_id)
        self._require_owner(actor, booking)
        return self._transition(
            db, booking_id, BookingStatus.WAITING, BookingStatus.CANCELLED, actor,
            values={"cancelled_at": now_utc()},
        )

    @as_result
    def complete(self, db: Session, booking_id: int, actor: Actor) -> Booking:
        """CONFIRMED -> COMPLETED, only once a PAID payment exists for the booking."""
        self._require_admin(actor)
        booking = booking_service.find(db, booking_id)
        if booking.status != BookingStatus.CONFIRMED:
            raise ConflictError(f"Booking berstatus {booking.status_label}, tidak dapat diselesaikan")

        paid = db.query(Payment.id).filter(
            Payment.booking_id == booking_id,
            Payment.status == PaymentStatus.PAID.value,
        ).first()
        if not paid:
            raise ConflictError("Booking belum dibayar")

        return self._transition(
            db, booking_id, BookingStatus.CONFIRMED, BookingStatus.COMPLETED, actor,
            values={"completed_at": now_utc()},
        )

    @as_result
    def delete(self, db: Session, booking_id: int, actor: Actor) -> int:
        """Hard cancel: the owner removes a booking that is still WAITING."""
        booking = booking_service.find(db, booking_id)
        self._require_owner(actor, booking)

        deleted = db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.status == BookingStatus.WAITING.value,
        ).delete(synchronize_session=False)
        if not deleted:
            db.refresh(booking)
            raise ConflictError(f"Booking berstatus {booking.status_label}, tidak dapat dihapus")

        # Bulk delete skips ORM cascades
        db.expunge(booking)
        db.query(BookingItem).filter(BookingItem.booking_id == booking_id).delete()
        db.query(BookingStatusLog).filter(BookingStatusLog.booking_id == booking_id).delete()
        db.flush()
        logger.info(f"Booking #{booking_id} deleted by user #{actor.id}")
        return booking_id

    # ==========================================
    # Private helpers
    # ==========================================

    def _transition(
        self,
        db: Session,
        booking_id: int,
        source: BookingStatus,
        target: BookingStatus,
        actor: Actor,
        values: Optional[dict] = None,
        description: Optional[str] = None,
    ) -> Booking:
        if not can_transition(source, target):
            raise ConflictError(f"Transisi {source.value} -> {target.value} tidak diizinkan")

        booking = booking_service.find(db, booking_id)

        changes = {"status": target.value}
        changes.update(values or {})
        updated = db.query(Booking).filter(
            Booking.id == booking_id,
            Booking.status == source.value,
        ).update(changes, synchronize_session=False)

        db.refresh(booking)
        if not updated:
            raise ConflictError(
                f"Booking berstatus {booking.status_label}, tidak dapat diubah menjadi {target.value}"
            )

        db.add(BookingStatusLog(
            booking_id=booking.id,
            old_status=source.value,
            new_status=target.value,
            changed_by=actor.id,
            description=description,
        ))

        verb, extra = _NOTIFY_TEXT[target]
        body = extra
        if target == BookingStatus.REJECTED:
            body = f"Alasan: {booking.rejection_reason}" if booking.rejection_reason else None
        notification_service.send(
            db, booking.owner_id, NotificationType.BOOKING,
            title=f"Booking #{booking.id} {verb}",
            body=body,
        )
        db.flush()

        logger.info(f"Booking #{booking.id}: {source.value} -> {target.value} by user #{actor.id}")
        return booking

    def _require_admin(self, actor: Actor):
        if not actor.is_admin:
            raise AuthorizationError("Hanya admin yang dapat melakukan aksi ini")

    def _require_owner(self, actor: Actor, booking: Booking):
        if not actor.owns(booking.owner_id):
            raise AuthorizationError("Booking ini bukan milik Anda")


# Singleton
booking_state_machine = BookingStateMachine()
