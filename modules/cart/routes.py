"""
Cart Routes
=============
Server-authoritative cart: every mutation commits and answers with a
fresh read of the whole cart and its totals.

Endpoints:
  GET    /cart      : Cart lines + totals
  POST   /cart      : Add (merges into an existing line)
  PATCH  /cart/{id} : Set quantity / notes
  DELETE /cart/{id} : Remove one line
  DELETE /cart      : Clear
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import money, iso
from common.result import unwrap
from modules.auth.deps import require_login
from modules.cart.service import cart_service, CartView
from modules.catalog.models import ItemKind

router = APIRouter(prefix="/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class CartAddRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_type: ItemKind = Field(..., alias="itemType")
    asset_id: Optional[int] = Field(None, alias="assetId")
    service_id: Optional[int] = Field(None, alias="serviceId")
    package_id: Optional[int] = Field(None, alias="packageId")
    qty: int = Field(1, alias="qty")
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_product(self):
        product_id = self.asset_id if self.item_type == ItemKind.ASSET else self.service_id
        if product_id is None:
            raise ValueError("assetId wajib untuk ASSET, serviceId wajib untuk SERVICE")
        return self

    @property
    def product_id(self) -> int:
        return self.asset_id if self.item_type == ItemKind.ASSET else self.service_id


class CartUpdateRequest(BaseModel):
    quantity: int
    notes: Optional[str] = None


# ==========================================
# Serializers
# ==========================================

def cart_item_dict(item) -> dict:
    return {
        "id": item.id,
        "itemType": item.kind,
        "productId": item.product_id,
        "packageId": item.package_id,
        "name": item.name,
        "quantity": item.quantity,
        "unitPrice": money(item.unit_price),
        "lineTotal": money(item.line_total),
        "notes": item.notes,
        "createdAt": iso(item.created_at),
    }


def cart_dict(view: CartView) -> dict:
    return {
        "items": [cart_item_dict(it) for it in view.items],
        "totalAmount": money(view.total_amount),
        "totalQuantity": view.total_quantity,
    }


def _fresh_cart(db: Session, owner_id: int) -> dict:
    return cart_dict(unwrap(cart_service.get_cart(db, owner_id)))


# ==========================================
# Routes
# ==========================================

@router.get("")
async def get_cart(
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    return _fresh_cart(db, me.id)


@router.post("", status_code=201)
async def add_to_cart(
    body: CartAddRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    unwrap(cart_service.add(
        db, me.id, body.item_type, body.product_id,
        quantity=body.qty, package_id=body.package_id, notes=body.notes,
    ), db)
    return _fresh_cart(db, me.id)


@router.patch("/{item_id}")
async def update_cart_item(
    item_id: int,
    body: CartUpdateRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    unwrap(cart_service.set_quantity(db, me.id, item_id, body.quantity, notes=body.notes), db)
    return _fresh_cart(db, me.id)


@router.delete("/{item_id}")
async def remove_cart_item(
    item_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    unwrap(cart_service.remove(db, me.id, item_id), db)
    return _fresh_cart(db, me.id)


@router.delete("")
async def clear_cart(
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    unwrap(cart_service.clear(db, me.id), db)
    return _fresh_cart(db, me.id)
