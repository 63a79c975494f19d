"""
API errors and their translation into the JSON envelope.

Handlers raise one of the ApiError subclasses; ``register_error_handlers``
turns them (and anything unexpected) into
``{"success": false, "message": ..., "error": ...}`` responses.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        if message is not None:
            self.message = message
        self.error = error
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = 400
    message = "Bad request"


class Unauthorized(ApiError):
    status_code = 401
    message = "Authentication required"


class Forbidden(ApiError):
    status_code = 403
    message = "Access denied"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class Conflict(ApiError):
    status_code = 409
    message = "Conflict"


class CartItemNotFound(NotFound):
    message = "Item not found in cart"


class CartConflict(Conflict):
    message = "Cart was modified by another request, please retry"


def error_body(message: str, error: Optional[str] = None) -> dict:
    body = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.error))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"
    return JSONResponse(status_code=400, content=error_body(message, "Validation failed"))


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Only the router raises these: no route for this method and path.
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Route not found",
                "message": f"Cannot {request.method} {request.url.path}",
            },
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)


async def unhandled_error_middleware(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("Internal server error", str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.middleware("http")(unhandled_error_middleware)
