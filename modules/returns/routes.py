"""
Returns & Fines Routes
========================
POST /returns answers with the recorded return and, for a damaged or lost
item, an unsaved fine proposal for the admin to edit and POST to /fines.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import money, iso
from common.result import unwrap
from modules.auth.deps import require_login, require_admin
from modules.returns.models import Fine, FineType, Return
from modules.returns.service import FineProposal, return_service

router = APIRouter(tags=["returns"])


# ==========================================
# Schemas
# ==========================================

class ReturnRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_item_id: int = Field(..., alias="bookingItemId")
    condition: str
    notes: Optional[str] = None
    returned_at: Optional[str] = Field(None, alias="returnedAt")


class FineRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: int = Field(..., alias="bookingId")
    return_id: Optional[int] = Field(None, alias="returnId")
    type: FineType = FineType.DAMAGE
    amount: str
    notes: Optional[str] = None


# ==========================================
# Serializers
# ==========================================

def return_dict(ret: Return) -> dict:
    return {
        "id": ret.id,
        "bookingItemId": ret.booking_item_id,
        "returnedAt": iso(ret.returned_at),
        "condition": ret.condition,
        "conditionLabel": ret.condition_label,
        "notes": ret.notes,
        "verifiedBy": ret.verified_by,
    }


def proposal_dict(proposal: Optional[FineProposal]) -> Optional[dict]:
    if proposal is None:
        return None
    return {
        "bookingId": proposal.booking_id,
        "returnId": proposal.return_id,
        "type": proposal.type.value,
        "amount": money(proposal.amount),
        "notes": proposal.notes,
    }


def fine_dict(fine: Fine) -> dict:
    return {
        "id": fine.id,
        "bookingId": fine.booking_id,
        "returnId": fine.return_id,
        "type": fine.type,
        "amount": money(fine.amount),
        "notes": fine.notes,
        "paid": fine.paid,
        "paidAt": iso(fine.paid_at),
        "createdAt": iso(fine.created_at),
    }


# ==========================================
# Returns
# ==========================================

@router.post("/returns", status_code=201)
async def process_return(
    body: ReturnRequest,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    ret, proposal = unwrap(return_service.process_return(
        db, body.booking_item_id, body.condition, admin,
        notes=body.notes, returned_at=body.returned_at,
    ), db)
    return {"return": return_dict(ret), "fineProposal": proposal_dict(proposal)}


@router.get("/returns")
async def list_returns(
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    returns = unwrap(return_service.list_returns(db, me))
    return {"items": [return_dict(r) for r in returns], "total": len(returns)}


# ==========================================
# Fines
# ==========================================

@router.post("/fines", status_code=201)
async def create_fine(
    body: FineRequest,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    fine = unwrap(return_service.create_fine(
        db, body.booking_id, body.amount, admin,
        fine_type=body.type, notes=body.notes, return_id=body.return_id,
    ), db)
    return fine_dict(fine)


@router.get("/fines")
async def list_fines(
    paid: Optional[bool] = None,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    fines = unwrap(return_service.list_fines(db, me, paid))
    return {"items": [fine_dict(f) for f in fines], "total": len(fines)}


@router.patch("/fines/{fine_id}/pay")
async def pay_fine(
    fine_id: int,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    return fine_dict(unwrap(return_service.mark_fine_paid(db, fine_id, admin), db))
