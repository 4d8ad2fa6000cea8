"""
Cart Module - Routes
=====================
Per-user cart (created on first access) and WhatsApp sharing.

Endpoints:
  GET    /api/cart                 - Cart with active-design items
  POST   /api/cart/items           - Add design (merges quantity, max 10)
  PUT    /api/cart/items/{id}      - Update quantity / notes
  DELETE /api/cart/items/{id}      - Remove item
  DELETE /api/cart                 - Remove all items
  POST   /api/cart/share           - WhatsApp deep link for designs or cart items
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import MAX_CART_QUANTITY
from common.responses import success_response
from common.storage import LocalObjectStore, get_storage
from modules.auth.deps import require_approved
from modules.cart.service import cart_service
from modules.user.models import User

router = APIRouter(prefix="/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddItemRequest(BaseModel):
    design_id: int
    quantity: int = Field(1, ge=1, le=MAX_CART_QUANTITY)
    notes: Optional[str] = Field(None, max_length=1000)


class UpdateItemRequest(BaseModel):
    quantity: Optional[int] = Field(None, ge=1, le=MAX_CART_QUANTITY)
    notes: Optional[str] = Field(None, max_length=1000)


class ShareRequest(BaseModel):
    design_ids: Optional[List[int]] = None
    items: Optional[List[int]] = None  # cart item ids
    message: Optional[str] = Field(None, max_length=2000)


# ==========================================
# 🛒 Cart
# ==========================================

@router.get("")
async def view_cart(
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: User = Depends(require_approved),
):
    cart = cart_service.get_or_create_cart(db, me.id)
    db.commit()
    return success_response(cart_service.cart_to_dict(db, cart, storage), "Cart retrieved successfully")


@router.post("/items", status_code=201)
async def add_item(
    body: AddItemRequest,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: User = Depends(require_approved),
):
    item, created = cart_service.add_item(db, me.id, body.design_id, body.quantity, body.notes)
    db.commit()
    return success_response(
        cart_service.item_to_dict(item, storage),
        "Item added to cart" if created else "Cart item quantity updated",
    )


@router.put("/items/{item_id}")
async def update_item(
    item_id: int,
    body: UpdateItemRequest,
    db: Session = Depends(get_db),
    storage: LocalObjectStore = Depends(get_storage),
    me: User = Depends(require_approved),
):
    item = cart_service.update_item(db, me.id, item_id, body.quantity, body.notes)
    db.commit()
    return success_response(cart_service.item_to_dict(item, storage), "Cart item updated")


@router.delete("/items/{item_id}")
async def remove_item(
    item_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(require_approved),
):
    cart_service.remove_item(db, me.id, item_id)
    db.commit()
    return success_response(message="Item removed from cart")


@router.delete("")
async def clear_cart(
    db: Session = Depends(get_db),
    me: User = Depends(require_approved),
):
    removed = cart_service.clear_cart(db, me.id)
    db.commit()
    return success_response({"removed_items": removed}, "Cart cleared")


# ==========================================
# 💬 WhatsApp Share
# ==========================================

@router.post("/share")
@router.post("/share/whatsapp")
async def share_on_whatsapp(
    body: ShareRequest,
    db: Session = Depends(get_db),
    me: User = Depends(require_approved),
):
    designs = cart_service.resolve_share_designs(db, me.id, body.design_ids, body.items)
    result = cart_service.build_share(db, designs, body.message)
    return success_response(result, "WhatsApp share link generated successfully")
