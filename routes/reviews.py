"""
Restaurant reviews written against delivered orders.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from auth import require_user, require_admin
from database import create_document, get_documents, get_document_by_id, delete_document
from errors import BadRequest, NotFound
from schemas import Review

router = APIRouter()
admin = APIRouter(dependencies=[Depends(require_admin)])


class CreateReviewRequest(BaseModel):
    order_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


@router.post("", status_code=201)
def create_review(payload: CreateReviewRequest, user: dict = Depends(require_user)):
    order = get_document_by_id("order", payload.order_id)
    if not order or order.get("user_id") != user["_id"]:
        raise NotFound("Order not found")
    if order.get("status") != "delivered":
        raise BadRequest("Only delivered orders can be reviewed")
    if get_documents("review", {"order_id": payload.order_id}, limit=1):
        raise BadRequest("Order already reviewed")

    review = Review(
        user_id=user["_id"],
        restaurant_id=order["restaurant_id"],
        order_id=payload.order_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    review_id = create_document("review", review)
    return {
        "success": True,
        "message": "Review submitted successfully",
        "data": get_document_by_id("review", review_id),
    }


@router.get("")
def list_reviews(restaurant_id: str):
    reviews = get_documents("review", {"restaurant_id": restaurant_id}, sort=[("created_at", -1)])
    count = len(reviews)
    average = round(sum(r["rating"] for r in reviews) / count, 2) if count else 0.0
    return {
        "success": True,
        "count": count,
        "average_rating": average,
        "data": reviews,
    }


@admin.delete("/{review_id}")
def delete_review(review_id: str):
    ok = delete_document("review", review_id)
    if not ok:
        raise NotFound("Review not found")
    return {"success": True, "message": "Review deleted successfully"}
