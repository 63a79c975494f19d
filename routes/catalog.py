"""
Restaurant catalog: admin CRUD for every catalog collection plus public reads.
"""
import re
from typing import Optional, Type

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import require_admin
from database import create_document, get_documents, get_document_by_id, update_document, delete_document
from errors import NotFound
from schemas import Restaurant, Category, Item, Plan, Offer, Driver


def crud_router(collection: str, model: Type[BaseModel], label: str) -> APIRouter:
    """Admin list/get/create/update/delete for one collection."""
    router = APIRouter(dependencies=[Depends(require_admin)])
    not_found = f"{label} not found"

    @router.get("")
    def list_documents(restaurant_id: Optional[str] = None):
        filt = {"restaurant_id": restaurant_id} if restaurant_id else {}
        docs = get_documents(collection, filt, sort=[("created_at", -1)])
        return {"success": True, "count": len(docs), "data": docs}

    @router.get("/{doc_id}")
    def get_document(doc_id: str):
        doc = get_document_by_id(collection, doc_id)
        if not doc:
            raise NotFound(not_found)
        return {"success": True, "data": doc}

    @router.post("", status_code=201)
    def create(payload: model):
        doc_id = create_document(collection, payload)
        return {
            "success": True,
            "message": f"{label} created successfully",
            "data": get_document_by_id(collection, doc_id),
        }

    @router.put("/{doc_id}")
    def update(doc_id: str, payload: model):
        ok = update_document(collection, doc_id, payload.model_dump())
        if not ok:
            raise NotFound(not_found)
        return {
            "success": True,
            "message": f"{label} updated successfully",
            "data": get_document_by_id(collection, doc_id),
        }

    @router.delete("/{doc_id}")
    def remove(doc_id: str):
        ok = delete_document(collection, doc_id)
        if not ok:
            raise NotFound(not_found)
        return {"success": True, "message": f"{label} deleted successfully"}

    return router


admin_restaurants = crud_router("restaurant", Restaurant, "Restaurant")
admin_categories = crud_router("category", Category, "Category")
admin_items = crud_router("item", Item, "Item")
admin_plans = crud_router("plan", Plan, "Plan")
admin_offers = crud_router("offer", Offer, "Offer")
admin_drivers = crud_router("driver", Driver, "Driver")


# ===================== Public reads =====================
public = APIRouter()


def _get_active_restaurant(restaurant_id: str) -> dict:
    restaurant = get_document_by_id("restaurant", restaurant_id)
    if not restaurant or not restaurant.get("is_active", True):
        raise NotFound("Restaurant not found")
    return restaurant


@public.get("")
def list_restaurants(q: Optional[str] = None, cuisine: Optional[str] = None):
    filt = {"is_active": True}
    if q:
        filt["name"] = {"$regex": re.escape(q), "$options": "i"}
    if cuisine:
        filt["cuisine"] = cuisine
    docs = get_documents("restaurant", filt, sort=[("name", 1)])
    return {"success": True, "count": len(docs), "data": docs}


@public.get("/{restaurant_id}")
def get_restaurant(restaurant_id: str):
    return {"success": True, "data": _get_active_restaurant(restaurant_id)}


@public.get("/{restaurant_id}/items")
def list_restaurant_items(restaurant_id: str, category: Optional[str] = None):
    _get_active_restaurant(restaurant_id)
    filt = {"restaurant_id": restaurant_id, "is_available": True}
    if category:
        filt["category"] = category
    docs = get_documents("item", filt, sort=[("name", 1)])
    return {"success": True, "count": len(docs), "data": docs}


@public.get("/{restaurant_id}/categories")
def list_restaurant_categories(restaurant_id: str):
    _get_active_restaurant(restaurant_id)
    docs = get_documents("category", {"restaurant_id": restaurant_id, "is_active": True}, sort=[("name", 1)])
    return {"success": True, "count": len(docs), "data": docs}


@public.get("/{restaurant_id}/plans")
def list_restaurant_plans(restaurant_id: str):
    _get_active_restaurant(restaurant_id)
    docs = get_documents("plan", {"restaurant_id": restaurant_id, "is_active": True}, sort=[("price", 1)])
    return {"success": True, "count": len(docs), "data": docs}


@public.get("/{restaurant_id}/offers")
def list_restaurant_offers(restaurant_id: str):
    _get_active_restaurant(restaurant_id)
    docs = get_documents("offer", {"restaurant_id": restaurant_id, "is_active": True}, sort=[("created_at", -1)])
    return {"success": True, "count": len(docs), "data": docs}
