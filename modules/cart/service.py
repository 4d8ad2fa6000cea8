"""
Cart Module - Service Layer
==============================
Cart management: get/create, add/update/remove items, clear, and
WhatsApp share links for a selection of designs.
"""

import logging
import re
import urllib.parse
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from config.settings import (
    MAX_CART_QUANTITY, MAX_SHARE_DESIGNS,
    DEFAULT_WHATSAPP_NUMBERS, DEFAULT_WHATSAPP_TEMPLATE,
)
from common.exceptions import ValidationError, NotFoundError, ConflictError
from common.storage import LocalObjectStore
from modules.admin.service import get_setting
from modules.cart.models import Cart, CartItem
from modules.catalog.models import Design, DesignStatus

logger = logging.getLogger("gallery.cart")

WHATSAPP_BASE_URL = "https://wa.me"


def _check_quantity(quantity: int) -> None:
    if quantity is None or not (1 <= quantity <= MAX_CART_QUANTITY):
        raise ValidationError(f"Quantity must be between 1 and {MAX_CART_QUANTITY}")


class CartService:

    def get_or_create_cart(self, db: Session, user_id: int) -> Cart:
        """Get existing cart or create new one for user."""
        cart = db.query(Cart).filter(Cart.user_id == user_id).first()
        if cart:
            return cart
        cart = Cart(user_id=user_id)
        db.add(cart)
        try:
            db.flush()
        except IntegrityError:
            # created by a concurrent request
            db.rollback()
            cart = db.query(Cart).filter(Cart.user_id == user_id).one()
        return cart

    def _active_design(self, db: Session, design_id: int) -> Design:
        design = db.query(Design).filter(
            Design.id == design_id,
            Design.status == DesignStatus.ACTIVE.value,
        ).first()
        if not design:
            raise NotFoundError("Design not found or not available")
        return design

    def _owned_item(self, db: Session, user_id: int, item_id: int) -> CartItem:
        """Cart item that belongs to the user's cart. Other users' items are reported as missing."""
        item = (
            db.query(CartItem)
            .join(Cart, Cart.id == CartItem.cart_id)
            .filter(CartItem.id == item_id, Cart.user_id == user_id)
            .with_for_update(of=CartItem)
            .first()
        )
        if not item:
            raise NotFoundError("Cart item not found")
        return item

    def get_cart_items(self, db: Session, cart: Cart) -> List[Tuple[CartItem, Design]]:
        """Items whose design is still active, newest first."""
        return (
            db.query(CartItem, Design)
            .join(Design, Design.id == CartItem.design_id)
            .filter(CartItem.cart_id == cart.id, Design.status == DesignStatus.ACTIVE.value)
            .order_by(CartItem.created_at.desc(), CartItem.id.desc())
            .all()
        )

    def add_item(
        self, db: Session, user_id: int, design_id: int, quantity: int = 1, notes: Optional[str] = None,
    ) -> Tuple[CartItem, bool]:
        """
        Add a design or increase the quantity of the existing row.
        Rejects (does not clamp) a merge that would exceed the per-design maximum.
        Returns: (item, created)
        """
        _check_quantity(quantity)
        self._active_design(db, design_id)
        cart = self.get_or_create_cart(db, user_id)

        item = db.query(CartItem).filter(
            CartItem.cart_id == cart.id,
            CartItem.design_id == design_id,
        ).with_for_update().first()

        if item:
            new_qty = item.quantity + quantity
            if new_qty > MAX_CART_QUANTITY:
                raise ValidationError(
                    f"Cannot add {quantity} more: maximum quantity per design is "
                    f"{MAX_CART_QUANTITY} ({item.quantity} already in cart)"
                )
            item.quantity = new_qty
            if notes is not None:
                item.notes = notes
            db.flush()
            return item, False

        item = CartItem(cart_id=cart.id, design_id=design_id, quantity=quantity, notes=notes)
        db.add(item)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Cart was modified by another request, please retry")
        return item, True

    def update_item(
        self, db: Session, user_id: int, item_id: int,
        quantity: Optional[int] = None, notes: Optional[str] = None,
    ) -> CartItem:
        if quantity is None and notes is None:
            raise ValidationError("No fields to update")
        item = self._owned_item(db, user_id, item_id)
        if quantity is not None:
            _check_quantity(quantity)
            item.quantity = quantity
        if notes is not None:
            item.notes = notes
        db.flush()
        return item

    def remove_item(self, db: Session, user_id: int, item_id: int) -> None:
        item = self._owned_item(db, user_id, item_id)
        db.delete(item)
        db.flush()

    def clear_cart(self, db: Session, user_id: int) -> int:
        """Delete every item; the cart row stays. Returns number of removed items."""
        cart = self.get_or_create_cart(db, user_id)
        removed = db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
        db.flush()
        db.expire(cart, ["items"])
        return removed

    # ------------------------------------------
    # WhatsApp share
    # ------------------------------------------

    def resolve_share_designs(
        self, db: Session, user_id: int,
        design_ids: Optional[List[int]] = None, item_ids: Optional[List[int]] = None,
    ) -> List[Design]:
        """Active designs for the given design ids and/or the user's cart item ids, in request order."""
        if len(design_ids or []) + len(item_ids or []) > MAX_SHARE_DESIGNS:
            raise ValidationError(f"Maximum {MAX_SHARE_DESIGNS} designs can be shared at once")
        ordered: List[int] = list(design_ids or [])
        if item_ids:
            rows = (
                db.query(CartItem.id, CartItem.design_id)
                .join(Cart, Cart.id == CartItem.cart_id)
                .filter(Cart.user_id == user_id, CartItem.id.in_(item_ids))
                .all()
            )
            by_item = dict(rows)
            ordered.extend(by_item[i] for i in item_ids if i in by_item)

        ordered = list(dict.fromkeys(ordered))
        if not ordered and not item_ids:
            raise ValidationError("Design IDs are required")

        designs = db.query(Design).filter(
            Design.id.in_(ordered),
            Design.status == DesignStatus.ACTIVE.value,
        ).all() if ordered else []
        if not designs:
            raise NotFoundError("No valid designs found")
        position = {design_id: i for i, design_id in enumerate(ordered)}
        return sorted(designs, key=lambda d: position[d.id])

    def build_share(self, db: Session, designs: List[Design], message: Optional[str] = None) -> Dict[str, object]:
        """Format the summary, fill the template, and build the wa.me deep link."""
        lines = []
        for d in designs:
            parts = [
                d.title,
                f"Design #{d.design_number}" if d.design_number else "",
                d.category,
                d.style,
                d.colour,
            ]
            lines.append("• " + " - ".join(p for p in parts if p))
        design_list = "\n".join(lines)

        template = (message or "").strip() or get_setting(db, "whatsapp_message_template", DEFAULT_WHATSAPP_TEMPLATE)
        text = template.replace("{design_list}", design_list)

        numbers = get_setting(db, "whatsapp_contact_numbers", DEFAULT_WHATSAPP_NUMBERS)
        first = next((n.strip() for n in numbers.split(",") if n.strip()), DEFAULT_WHATSAPP_NUMBERS)
        phone = re.sub(r"\D", "", first)

        url = f"{WHATSAPP_BASE_URL}/{phone}?text={urllib.parse.quote(text, safe='')}"
        return {
            "share_url": url,
            "whatsapp_url": url,
            "message": text,
            "design_count": len(designs),
        }

    # ------------------------------------------
    # Serialization
    # ------------------------------------------

    def cart_to_dict(self, db: Session, cart: Cart, storage: LocalObjectStore) -> dict:
        rows = self.get_cart_items(db, cart)
        items = [self.item_to_dict(item, storage, design) for item, design in rows]
        return {
            "id": cart.id,
            "user_id": cart.user_id,
            "items": items,
            "total_items": len(items),
            "total_quantity": sum(i["quantity"] for i in items),
            "created_at": cart.created_at,
            "updated_at": cart.updated_at,
        }

    def item_to_dict(self, item: CartItem, storage: LocalObjectStore, design: Optional[Design] = None) -> dict:
        design = design or item.design
        return {
            "id": item.id,
            "cart_id": item.cart_id,
            "design_id": item.design_id,
            "quantity": item.quantity,
            "notes": item.notes,
            "created_at": item.created_at,
            "updated_at": item.updated_at,
            "design": {
                "id": design.id,
                "title": design.title,
                "design_number": design.design_number,
                "category": design.category,
                "style": design.style,
                "colour": design.colour,
                "price_range": design.price_range,
                "image_url": storage.public_url(design.object_key),
            } if design else None,
        }


cart_service = CartService()
