"""
FastAPI Application

Composes the HTTP API: CORS, request logging, error containment, the route
table and the fallback routes. Integrates Socket.io for real-time delivery
tracking on the same listener.
"""

import logging
from typing import Optional

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from config import Settings
from context import AppContext
from middleware import error_containment_middleware, log_requests_middleware
from routes import (
    auth,
    cart,
    delivery,
    email,
    health,
    orders,
    payments,
    products,
    razorpay_webhook,
    reviews,
    static,
    webhooks
)
from routes.delivery_socket import DeliverySocketHandler
from routing import RouteTable

logger = logging.getLogger(__name__)

SOCKETIO_PATH = "socket.io"


def build_route_table(ctx: AppContext) -> RouteTable:
    """
    Build the API route table.

    Webhook routers take the raw body and are added first; every other
    prefix receives a parsed body.
    """
    table = RouteTable()

    # Payment providers sign the raw body
    table.add_raw("/api/webhooks", webhooks.create_router(ctx))
    table.add_raw("/api/webhooks/razorpay", razorpay_webhook.create_router(ctx))

    table.add("/api/auth", auth.create_router(ctx))
    table.add("/api/products", products.create_router(ctx))
    table.add("/api/cart", cart.create_router(ctx))
    table.add("/api/orders", orders.create_router(ctx))
    table.add("/api/reviews", reviews.create_router(ctx))
    table.add("/api/email", email.create_router(ctx))
    table.add("/api/payments", payments.create_router(ctx))
    table.add("/api/delivery", delivery.create_router(ctx))
    return table


def create_api(ctx: AppContext, route_table: Optional[RouteTable] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        ctx: Shared settings, database and delivery socket handler
        route_table: Prebuilt route table (defaults to build_route_table)

    Returns:
        Configured FastAPI app
    """
    settings = ctx.settings

    app = FastAPI(
        title="Protein Grub Hub API",
        description="Food delivery storefront backend with real-time delivery tracking",
        version="1.0.0"
    )

    # Last added runs first
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_containment_middleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=log_requests_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    (route_table or build_route_table(ctx)).install(app)

    app.include_router(health.create_router(settings.serve_frontend))
    # Catch-all, must stay last
    app.include_router(static.create_router(settings.serve_frontend, settings.frontend_dist_dir))

    if settings.serve_frontend:
        logger.info(f"Serving frontend from {settings.frontend_dist_dir}")

    return app


def create_app(settings: Settings, db) -> socketio.ASGIApp:
    """
    Create the ASGI app served by uvicorn.

    The delivery socket handler is built exactly once here, with the same
    origin allow-list as the HTTP CORS middleware, and injected into the
    route modules.

    Args:
        settings: Application settings
        db: Connected database handle

    Returns:
        Socket.io ASGI app wrapping the FastAPI app
    """
    delivery_handler = DeliverySocketHandler(settings.allowed_origins, db=db)
    ctx = AppContext(settings=settings, db=db, delivery=delivery_handler)
    api = create_api(ctx)

    # Wrap FastAPI app with Socket.io ASGI
    return socketio.ASGIApp(
        socketio_server=delivery_handler.sio,
        other_asgi_app=api,
        socketio_path=SOCKETIO_PATH
    )
