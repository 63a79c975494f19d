"""
Cart persistence.

A cart is read, mutated through the ``Cart`` methods and written back with
``save_cart``, which only succeeds if nobody saved the same cart in between.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import get_collection, serialize_doc, to_object_id
from errors import CartConflict, CartItemNotFound
from schemas import Cart, CartItem

logger = logging.getLogger(__name__)

COLLECTION = "cart"


def _from_doc(doc: Optional[dict]) -> Optional[Cart]:
    if not doc:
        return None
    return Cart.model_validate(serialize_doc(doc))


def find_active_cart(user_id: str, restaurant_id: str) -> Optional[Cart]:
    logger.debug("Finding cart for user %s at restaurant %s", user_id, restaurant_id)
    doc = get_collection(COLLECTION).find_one({"user_id": user_id, "restaurant_id": restaurant_id})
    return _from_doc(doc)


def get_or_create_cart(user_id: str, restaurant_id: str) -> Cart:
    now = datetime.now(timezone.utc)
    key = {"user_id": user_id, "restaurant_id": restaurant_id}
    try:
        doc = get_collection(COLLECTION).find_one_and_update(
            key,
            {"$setOnInsert": {
                "items": [],
                "subtotal": 0.0,
                "total": 0.0,
                "version": 0,
                "created_at": now,
                "updated_at": now,
            }},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        # a concurrent request inserted the same cart first
        doc = get_collection(COLLECTION).find_one(key)
    return _from_doc(doc)


def save_cart(cart: Cart) -> Cart:
    """Write the cart back if its version is unchanged, then bump the version."""
    cart.calculate_totals()
    payload = cart.model_dump(exclude={"id", "created_at"})
    payload["version"] = cart.version + 1
    payload["updated_at"] = datetime.now(timezone.utc)
    doc = get_collection(COLLECTION).find_one_and_update(
        {"_id": to_object_id(cart.id), "version": cart.version},
        {"$set": payload},
        return_document=ReturnDocument.AFTER,
    )
    if doc is None:
        logger.warning("Cart %s changed concurrently (expected version %d)", cart.id, cart.version)
        raise CartConflict()
    return _from_doc(doc)


def add_item(user_id: str, restaurant_id: str, data: CartItem) -> Cart:
    cart = get_or_create_cart(user_id, restaurant_id)
    cart.add_item(data)
    return save_cart(cart)


def update_item_quantity(user_id: str, restaurant_id: str, item_id: str, quantity: int) -> Cart:
    cart = find_active_cart(user_id, restaurant_id)
    if cart is None:
        raise CartItemNotFound()
    cart.update_item_quantity(item_id, quantity)
    return save_cart(cart)


def remove_item(user_id: str, restaurant_id: str, item_id: str) -> Cart:
    return update_item_quantity(user_id, restaurant_id, item_id, 0)


def clear_cart(user_id: str, restaurant_id: str) -> Optional[Cart]:
    cart = find_active_cart(user_id, restaurant_id)
    if cart is None:
        return None
    cart.clear()
    return save_cart(cart)
