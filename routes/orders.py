"""
Orders: checkout from the cart, order history, and admin status updates.
"""
import logging
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

import carts
from auth import require_user, require_admin
from database import create_document, get_documents, get_document_by_id, update_document
from errors import BadRequest, NotFound
from schemas import Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

router = APIRouter()
admin = APIRouter(dependencies=[Depends(require_admin)])


class CreateOrderRequest(BaseModel):
    restaurant_id: str
    delivery_address: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    driver_id: Optional[str] = None


def _new_order_number() -> str:
    return f"ORD-{str(ObjectId())[-6:].upper()}"


@router.post("", status_code=201)
def create_order(payload: CreateOrderRequest, user: dict = Depends(require_user)):
    cart = carts.find_active_cart(user["_id"], payload.restaurant_id)
    if cart is None or not cart.items:
        raise BadRequest("Cart is empty")

    order = Order(
        user_id=user["_id"],
        restaurant_id=payload.restaurant_id,
        order_number=_new_order_number(),
        items=[OrderItem(**item.model_dump(include=set(OrderItem.model_fields))) for item in cart.items],
        subtotal=cart.subtotal,
        total=cart.total,
        delivery_address=payload.delivery_address,
        notes=payload.notes,
    )
    # Empty the exact cart snapshot first: a concurrent change aborts checkout
    # before any order exists.
    cart.clear()
    carts.save_cart(cart)
    order_id = create_document("order", order)
    logger.info("Order %s placed by user %s", order.order_number, user["_id"])
    return {
        "success": True,
        "message": "Order placed successfully",
        "data": get_document_by_id("order", order_id),
    }


@router.get("")
def list_my_orders(user: dict = Depends(require_user)):
    orders = get_documents("order", {"user_id": user["_id"]}, sort=[("created_at", -1)])
    return {"success": True, "count": len(orders), "data": orders}


@router.get("/{order_id}")
def get_order(order_id: str, user: dict = Depends(require_user)):
    order = get_document_by_id("order", order_id)
    if not order or order.get("user_id") != user["_id"]:
        raise NotFound("Order not found")
    return {"success": True, "data": order}


@admin.get("")
def list_orders(status: Optional[OrderStatus] = None, restaurant_id: Optional[str] = None):
    filt = {}
    if status:
        filt["status"] = status
    if restaurant_id:
        filt["restaurant_id"] = restaurant_id
    orders = get_documents("order", filt, sort=[("created_at", -1)])
    return {"success": True, "count": len(orders), "data": orders}


@admin.put("/{order_id}/status")
def update_order_status(order_id: str, payload: UpdateOrderStatusRequest):
    update = {"status": payload.status}
    if payload.driver_id:
        if not get_document_by_id("driver", payload.driver_id):
            raise NotFound("Driver not found")
        update["driver_id"] = payload.driver_id
    ok = update_document("order", order_id, update)
    if not ok:
        raise NotFound("Order not found")
    logger.info("Order %s status set to %s", order_id, payload.status)
    return {
        "success": True,
        "message": "Order status updated successfully",
        "data": get_document_by_id("order", order_id),
    }
