"""
Registration and login (tokenless: clients send the returned id as X-User-Id).
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from auth import hash_password, verify_password, require_roles
from database import create_document, get_documents, get_document_by_id
from errors import BadRequest, Unauthorized, Forbidden
from schemas import User, UserProfile

router = APIRouter()


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, min_length=7, max_length=15)
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest):
    if get_documents("user", {"email": payload.email}, limit=1):
        raise BadRequest("Email already registered")
    user = User(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        password_hash=hash_password(payload.password),
    )
    try:
        user_id = create_document("user", user)
    except DuplicateKeyError:
        # lost a race with a concurrent signup for the same email
        raise BadRequest("Email already registered")
    return {
        "success": True,
        "message": "Account created successfully",
        "data": UserProfile.from_document(get_document_by_id("user", user_id)),
    }


@router.post("/login")
def login(payload: LoginRequest):
    users = get_documents("user", {"email": payload.email}, limit=1)
    if not users or not verify_password(payload.password, users[0].get("password_hash")):
        raise Unauthorized("Invalid credentials")
    user = users[0]
    if user.get("is_blocked"):
        raise Forbidden("Account is blocked", error=user.get("blocked_reason") or None)
    return {"success": True, "message": "Login successful", "data": UserProfile.from_document(user)}


@router.get("/me")
def me(user: dict = Depends(require_roles())):
    return {"success": True, "data": UserProfile.from_document(user)}
