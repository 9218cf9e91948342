"""
Feedback Module - Service Layer
=================================
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError

from common.exceptions import AuthorizationError, ConflictError, ValidationError
from common.result import as_result
from modules.booking.models import BookingStatus
from modules.booking.service import booking_service
from modules.feedback.models import Feedback
from modules.user.models import Actor

logger = logging.getLogger("umc.feedback")


class FeedbackService:

    @as_result
    def submit(self, db: Session, booking_id: int, rating, actor: Actor, comment: Optional[str] = None) -> Feedback:
        """Owner rates a COMPLETED booking, once."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating harus antara 1 sampai 5")

        booking = booking_service.find(db, booking_id)
        if not actor.owns(booking.owner_id):
            raise AuthorizationError("Booking ini bukan milik Anda")
        if booking.status != BookingStatus.COMPLETED:
            raise ConflictError("Ulasan hanya dapat diberikan untuk booking yang sudah selesai")
        if db.query(Feedback.id).filter(Feedback.booking_id == booking.id).first():
            raise ConflictError("Anda sudah memberikan ulasan untuk booking ini")

        feedback = Feedback(
            booking_id=booking.id,
            user_id=actor.id,
            rating=rating,
            comment=(comment or "").strip() or None,
        )
        db.add(feedback)
        try:
            db.flush()
        except IntegrityError:
            raise ConflictError("Anda sudah memberikan ulasan untuk booking ini")

        logger.info(f"Feedback #{feedback.id} for booking #{booking.id}: {rating}/5")
        return feedback

    @as_result
    def for_booking(self, db: Session, booking_id: int, actor: Actor) -> Optional[Feedback]:
        booking = booking_service.find(db, booking_id)
        if not actor.is_admin and not actor.owns(booking.owner_id):
            raise AuthorizationError("Booking ini bukan milik Anda")
        return db.query(Feedback).filter(Feedback.booking_id == booking_id).first()

    @as_result
    def list_all(self, db: Session, actor: Actor, rating: Optional[int] = None) -> List[Feedback]:
        if not actor.is_admin:
            raise AuthorizationError("Hanya admin yang dapat melihat semua ulasan")
        q = db.query(Feedback)
        if rating is not None:
            q = q.filter(Feedback.rating == rating)
        return q.order_by(desc(Feedback.id)).all()


# Singleton
feedback_service = FeedbackService()
