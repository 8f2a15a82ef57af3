import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.database import create_db_and_tables
from app.config import settings
from app.exceptions import OrderServiceError
from app.routes import (
    cart,
    health,
    notifications,
    orders,
    realtime,
    rider,
)

from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local
    if settings.ENV == "local":
        create_db_and_tables()
    yield

app = FastAPI(title="Food Delivery Orders API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(rider.router, prefix="/rider", tags=["Rider"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(cart.router, prefix="/cart", tags=["Cart"])
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(realtime.router, tags=["Realtime"])


@app.get("/")
def root():
    return {
        "order_endpoints": [
            "/orders", "/orders/restaurant/my-orders", "/orders/{order_id}",
            "/orders/{order_id}/status", "/orders/{order_id}/cancel",
            "/orders/{order_id}/track"
        ],
        "rider_endpoints": [
            "/rider/orders", "/rider/orders/available", "/rider/stats",
            "/rider/orders/{order_id}/status"
        ],
        "notification_endpoints": [
            "/notifications", "/notifications/unread-count",
            "/notifications/read-all", "/notifications/{notification_id}/read",
            "/notifications/{notification_id}"
        ],
        "cart": [
            "/cart", "/cart/add", "/cart/update/{id}",
            "/cart/remove/{id}", "/cart/clear"
        ],
        "realtime": ["/ws?token=<jwt>"],
        "health": ["/health"]
    }
