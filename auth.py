"""
Password hashing and the role guard used by every protected router.

Callers identify themselves with the ``X-User-Id`` header holding the id
returned by ``/api/user/login``.
"""
from typing import Optional

from fastapi import Header
from passlib.context import CryptContext

from database import get_document_by_id
from errors import Unauthorized, Forbidden

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def require_roles(*roles: str):
    """Build a dependency that resolves the caller and checks its role.

    The dependency returns the caller's user document so handlers can read
    ``user["_id"]`` without a second lookup.
    """

    def dependency(x_user_id: Optional[str] = Header(None)) -> dict:
        if not x_user_id:
            raise Unauthorized("Authentication required")
        user = get_document_by_id("user", x_user_id)
        if not user:
            raise Unauthorized("Invalid credentials")
        if user.get("is_blocked"):
            raise Forbidden("Account is blocked")
        if not user.get("is_active", True):
            raise Forbidden("Account is inactive")
        if roles and user.get("role", "user") not in roles:
            raise Forbidden("Access denied: insufficient role")
        return user

    return dependency


require_admin = require_roles("admin")
require_user = require_roles("user")
