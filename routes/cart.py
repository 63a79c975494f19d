"""
Shopping cart for the signed-in user, one cart per restaurant.

Mounted at /api/user/cart.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

import carts
from auth import require_user
from database import get_document_by_id
from errors import NotFound
from schemas import Cart, CartItem

router = APIRouter()


class AddItemRequest(BaseModel):
    item_id: str
    quantity: int = Field(1, ge=1, le=50)


class UpdateQuantityRequest(BaseModel):
    quantity: int = Field(..., le=50)


def _cart_response(cart: Cart, message: Optional[str] = None) -> dict:
    body = {"success": True, "data": cart}
    if message:
        body["message"] = message
    return body


@router.get("/{restaurant_id}")
def get_cart(restaurant_id: str, user: dict = Depends(require_user)):
    cart = carts.find_active_cart(user["_id"], restaurant_id)
    if cart is None:
        cart = Cart(user_id=user["_id"], restaurant_id=restaurant_id)
    return _cart_response(cart)


@router.post("/{restaurant_id}/items")
def add_to_cart(restaurant_id: str, payload: AddItemRequest, user: dict = Depends(require_user)):
    item = get_document_by_id("item", payload.item_id)
    if not item or item.get("restaurant_id") != restaurant_id or not item.get("is_available", True):
        raise NotFound("Item not found")

    line = CartItem(
        item_id=item["_id"],
        name=item["name"],
        description=item.get("description"),
        price=item["price"],
        quantity=payload.quantity,
        image=item.get("image"),
        category=item.get("category"),
    )
    cart = carts.add_item(user["_id"], restaurant_id, line)
    return _cart_response(cart, "Item added to cart")


@router.put("/{restaurant_id}/items/{item_id}")
def update_cart_item(restaurant_id: str, item_id: str, payload: UpdateQuantityRequest, user: dict = Depends(require_user)):
    cart = carts.update_item_quantity(user["_id"], restaurant_id, item_id, payload.quantity)
    message = "Item removed from cart" if payload.quantity <= 0 else "Cart updated"
    return _cart_response(cart, message)


@router.delete("/{restaurant_id}/items/{item_id}")
def remove_cart_item(restaurant_id: str, item_id: str, user: dict = Depends(require_user)):
    cart = carts.remove_item(user["_id"], restaurant_id, item_id)
    return _cart_response(cart, "Item removed from cart")


@router.delete("/{restaurant_id}")
def clear_cart(restaurant_id: str, user: dict = Depends(require_user)):
    cart = carts.clear_cart(user["_id"], restaurant_id)
    if cart is None:
        cart = Cart(user_id=user["_id"], restaurant_id=restaurant_id)
    return _cart_response(cart, "Cart cleared")
