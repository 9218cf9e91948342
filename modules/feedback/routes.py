"""
Feedback Routes
=================
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import iso
from common.result import unwrap
from modules.auth.deps import require_login, require_admin
from modules.feedback.models import Feedback
from modules.feedback.service import feedback_service

router = APIRouter(prefix="/feedbacks", tags=["feedback"])


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: int = Field(..., alias="bookingId")
    rating: int
    comment: Optional[str] = None


def feedback_dict(feedback: Feedback) -> dict:
    return {
        "id": feedback.id,
        "bookingId": feedback.booking_id,
        "userId": feedback.user_id,
        "rating": feedback.rating,
        "comment": feedback.comment,
        "createdAt": iso(feedback.created_at),
    }


@router.post("", status_code=201)
async def submit_feedback(
    body: FeedbackRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    feedback = unwrap(feedback_service.submit(db, body.booking_id, body.rating, me, comment=body.comment), db)
    return {"message": "Terima kasih atas ulasan Anda", "feedback": feedback_dict(feedback)}


@router.get("/by-booking/{booking_id}")
async def feedback_for_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    feedback = unwrap(feedback_service.for_booking(db, booking_id, me))
    return {"feedback": feedback_dict(feedback) if feedback else None}


@router.get("/admin/all")
async def list_feedbacks(
    rating: Optional[int] = None,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    items = unwrap(feedback_service.list_all(db, admin, rating))
    return {"items": [feedback_dict(f) for f in items], "total": len(items)}
