import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bookhaven.config import settings
from bookhaven.database import create_db_and_tables
from bookhaven.routes import (
    admin_orders,
    auth,
    cart,
    checkout,
    user_orders,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local; deployments migrate with alembic
    if settings.env == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="BookHaven Rentals API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(user_orders.router, prefix="/orders", tags=["Orders"])
app.include_router(admin_orders.router, prefix="/admin/orders", tags=["Admin Orders"])


@app.get("/")
def root():
    return {
        "cart": [
            "/cart", "/cart/add", "/cart/update/{item_id}",
            "/cart/remove/{item_id}", "/cart/clear"
        ],
        "checkout": [
            "/checkout", "/checkout/start", "/checkout/shipping", "/checkout/back",
            "/checkout/cancel", "/checkout/pay", "/checkout/verify-payment",
            "/checkout/dismiss-payment"
        ],
        "orders": [
            "/orders/my-orders", "/orders/downloads",
            "/orders/{order_id}", "/orders/{order_id}/timeline"
        ],
        "admin_orders": [
            "/admin/orders", "/admin/orders/{order_id}/status",
            "/admin/orders/{order_id}/payment-status"
        ],
    }
