"""
Admin user management: listing, statistics and block/unblock/activate actions.

Mounted at /api/admin/users. Every route requires the admin role.
"""
import logging
import math
from datetime import datetime, timezone
from typing import Optional, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from auth import require_admin
from database import get_documents, get_document_by_id, count_documents, update_document_if
from errors import BadRequest, NotFound, Conflict
from schemas import UserProfile

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])

MIN_BLOCK_REASON_LENGTH = 10
TOGGLE_ATTEMPTS = 3

# A user both blocked and inactive matches "blocked" and "inactive".
STATUS_FILTERS = {
    "active": {"is_active": True, "is_blocked": False},
    "blocked": {"is_blocked": True},
    "inactive": {"is_active": False},
}


class BlockRequest(BaseModel):
    reason: Optional[str] = None


def _get_user(user_id: str) -> dict:
    user = get_document_by_id("user", user_id)
    if not user:
        raise NotFound("User not found")
    return user


def _start_of_today() -> datetime:
    # naive UTC, the form MongoDB stores
    now = datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)


@router.get("")
def list_users(
    status: Optional[Literal["active", "blocked", "inactive"]] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
):
    query = STATUS_FILTERS.get(status, {})
    users = get_documents(
        "user",
        query,
        sort=[("created_at", -1)],
        skip=(page - 1) * limit,
        limit=limit,
    )
    total = count_documents("user", query)
    return {
        "success": True,
        "count": len(users),
        "total": total,
        "total_pages": math.ceil(total / limit),
        "current_page": page,
        "data": [UserProfile.from_document(user) for user in users],
    }


@router.get("/stats")
def get_user_stats():
    return {
        "success": True,
        "data": {
            "total": count_documents("user"),
            "active": count_documents("user", STATUS_FILTERS["active"]),
            "blocked": count_documents("user", STATUS_FILTERS["blocked"]),
            "inactive": count_documents("user", STATUS_FILTERS["inactive"]),
            "new_today": count_documents("user", {"created_at": {"$gte": _start_of_today()}}),
        },
    }


@router.get("/{user_id}")
def get_user(user_id: str):
    return {"success": True, "data": UserProfile.from_document(_get_user(user_id))}


@router.put("/{user_id}/block")
def block_user(user_id: str, payload: Optional[BlockRequest] = None):
    reason = (payload.reason if payload else None) or ""
    if len(reason.strip()) < MIN_BLOCK_REASON_LENGTH:
        raise BadRequest(f"Block reason must be at least {MIN_BLOCK_REASON_LENGTH} characters")

    user = update_document_if(
        "user", user_id,
        {"is_blocked": {"$ne": True}},
        {"is_blocked": True, "blocked_reason": reason.strip()},
    )
    if not user:
        _get_user(user_id)
        raise BadRequest("User is already blocked")

    logger.info("User %s blocked: %s", user_id, reason.strip())
    return {
        "success": True,
        "message": "User blocked successfully",
        "data": UserProfile.from_document(user),
    }


@router.put("/{user_id}/unblock")
def unblock_user(user_id: str):
    user = update_document_if(
        "user", user_id,
        {"is_blocked": True},
        {"is_blocked": False, "blocked_reason": ""},
    )
    if not user:
        _get_user(user_id)
        raise BadRequest("User is not blocked")

    logger.info("User %s unblocked", user_id)
    return {
        "success": True,
        "message": "User unblocked successfully",
        "data": UserProfile.from_document(user),
    }


@router.put("/{user_id}/toggle-status")
def toggle_user_status(user_id: str):
    for _ in range(TOGGLE_ATTEMPTS):
        current = _get_user(user_id).get("is_active", True)
        expected = {"is_active": {"$ne": False}} if current else {"is_active": False}
        user = update_document_if("user", user_id, expected, {"is_active": not current})
        if user:
            break
    else:
        raise Conflict("User status changed concurrently, please retry")

    state = "activated" if user["is_active"] else "deactivated"
    logger.info("User %s %s", user_id, state)
    return {
        "success": True,
        "message": f"User {state} successfully",
        "data": UserProfile.from_document(user),
    }
