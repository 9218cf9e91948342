"""
Cart Module - Service Layer
==============================
Cart management: read with totals, add (merging lines), set quantity,
remove and clear. Every mutation emits a "changed" signal.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, ValidationError
from common.result import as_result
from modules.cart.models import CartItem
from modules.catalog.models import ItemKind
from modules.catalog.service import catalog_service

logger = logging.getLogger("umc.cart")

CartListener = Callable[[int, str], None]


@dataclass
class CartView:
    items: List[CartItem] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    total_quantity: int = 0


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Jumlah harus berupa bilangan bulat")
    if quantity < 1:
        raise ValidationError("Jumlah minimal 1")
    return quantity


class CartService:

    def __init__(self):
        self._listeners: List[CartListener] = []

    # ==========================================
    # Signals
    # ==========================================

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a "changed" listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def emit(self, owner_id: int, event: str):
        for listener in list(self._listeners):
            listener(owner_id, event)

    # ==========================================
    # Read
    # ==========================================

    def lines(self, db: Session, owner_id: int) -> List[CartItem]:
        return (
            db.query(CartItem)
            .filter(CartItem.owner_id == owner_id)
            .order_by(CartItem.id)
            .all()
        )

    @as_result
    def get_cart(self, db: Session, owner_id: int) -> CartView:
        items = self.lines(db, owner_id)
        return CartView(
            items=items,
            total_amount=sum((it.line_total for it in items), Decimal("0")),
            total_quantity=sum(it.quantity for it in items),
        )

    # ==========================================
    # Mutations
    # ==========================================

    @as_result
    def add(
        self,
        db: Session,
        owner_id: int,
        kind: ItemKind,
        product_id: int,
        quantity: int = 1,
        package_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> CartItem:
        """Add a line, or increment the existing line with the same kind + product + package."""
        quantity = _validate_quantity(quantity)
        kind = ItemKind(kind)

        snapshot = catalog_service.get_price_snapshot(db, kind, product_id, package_id)
        if not snapshot.available:
            raise ValidationError(f"{snapshot.name} sedang tidak tersedia")

        item = db.query(CartItem).filter(
            CartItem.owner_id == owner_id,
            CartItem.kind == kind.value,
            CartItem.product_id == product_id,
            CartItem.package_id.is_(None) if package_id is None else CartItem.package_id == package_id,
        ).first()

        if item:
            item.quantity = item.quantity + quantity
            if notes:
                item.notes = notes
        else:
            item = CartItem(
                owner_id=owner_id,
                kind=kind.value,
                product_id=product_id,
                package_id=package_id,
                name=snapshot.name,
                quantity=quantity,
                unit_price=snapshot.unit_price,
                notes=notes or None,
            )
            db.add(item)

        db.flush()
        logger.info(f"Cart #{owner_id}: {kind.value}:{product_id} qty -> {item.quantity}")
        self.emit(owner_id, "add")
        return item

    @as_result
    def set_quantity(
        self, db: Session, owner_id: int, item_id: int, quantity: int, notes: Optional[str] = None,
    ) -> CartItem:
        quantity = _validate_quantity(quantity)
        item = self._owned_item(db, owner_id, item_id)
        item.quantity = quantity
        if notes is not None:
            item.notes = notes or None
        db.flush()
        self.emit(owner_id, "update")
        return item

    @as_result
    def remove(self, db: Session, owner_id: int, item_id: int) -> int:
        item = self._owned_item(db, owner_id, item_id)
        db.delete(item)
        db.flush()
        self.emit(owner_id, "remove")
        return item_id

    @as_result
    def clear(self, db: Session, owner_id: int) -> int:
        """Remove all of the owner's lines. Returns number of lines removed."""
        count = self.delete_all(db, owner_id)
        self.emit(owner_id, "clear")
        return count

    def delete_all(self, db: Session, owner_id: int) -> int:
        """Bulk delete without signalling (checkout runs it inside its own unit of work)."""
        count = db.query(CartItem).filter(CartItem.owner_id == owner_id).delete()
        db.flush()
        return count

    # ==========================================
    # Private helpers
    # ==========================================

    def _owned_item(self, db: Session, owner_id: int, item_id: int) -> CartItem:
        item = db.query(CartItem).filter(
            CartItem.id == item_id,
            CartItem.owner_id == owner_id,
        ).first()
        if not item:
            raise NotFoundError("Item keranjang tidak ditemukan")
        return item


# Singleton
cart_service = CartService()
