import logging
import os
import sys
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import database
from errors import register_error_handlers
from routes import accounts, admin_users, cart, catalog, orders, reviews

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("maate")

API_VERSION = "1.0.0"

app = FastAPI(title="Maate API", version=API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


# ===================== Routers =====================
app.include_router(accounts.router, prefix="/api/user", tags=["user"])
app.include_router(cart.router, prefix="/api/user/cart", tags=["cart"])
app.include_router(admin_users.router, prefix="/api/admin/users", tags=["admin"])
app.include_router(catalog.admin_restaurants, prefix="/api/admin/restaurants", tags=["admin"])
app.include_router(catalog.admin_categories, prefix="/api/admin/categories", tags=["admin"])
app.include_router(catalog.admin_items, prefix="/api/admin/items", tags=["admin"])
app.include_router(catalog.admin_plans, prefix="/api/admin/plans", tags=["admin"])
app.include_router(catalog.admin_offers, prefix="/api/admin/offers", tags=["admin"])
app.include_router(catalog.admin_drivers, prefix="/api/admin/drivers", tags=["admin"])
app.include_router(orders.admin, prefix="/api/admin/orders", tags=["admin"])
app.include_router(reviews.admin, prefix="/api/admin/reviews", tags=["admin"])
app.include_router(catalog.public, prefix="/api/restaurants", tags=["restaurant"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["reviews"])


# ===================== Process endpoints =====================
@app.get("/health")
def health():
    return {
        "status": "OK",
        "message": "Maate API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/")
def root():
    return {
        "message": "Welcome to Maate API",
        "version": API_VERSION,
        "endpoints": {
            "admin": "/api/admin",
            "user": "/api/user",
            "restaurants": "/api/restaurants",
            "orders": "/api/orders",
            "reviews": "/api/reviews",
            "health": "/health",
        },
    }


if __name__ == "__main__":
    import uvicorn

    try:
        database.connect()
    except Exception:
        logger.exception("Server startup error: database connection failed")
        sys.exit(1)

    port = int(os.getenv("PORT", 3001))
    logger.info("Server running on port %d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)
