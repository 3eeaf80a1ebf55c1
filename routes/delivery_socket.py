"""
Delivery Socket Handler

Handles real-time Socket.io connections for delivery tracking.
Clients join a per-order room and receive status and driver location
updates pushed from HTTP routes or from the driver's own socket. Only
sockets that connected with a driver's session token may send locations.
"""

import logging
from typing import Optional

import socketio

from services.auth import get_user_for_token

logger = logging.getLogger(__name__)


def order_room(order_id: str) -> str:
    """Socket.io room name for an order."""
    return f"order_{order_id}"


class DeliverySocketHandler:
    """
    Owns the Socket.io server and its delivery-tracking events.

    Constructed once per process with the same origin allow-list as the
    HTTP CORS middleware.
    """

    def __init__(
        self,
        allowed_origins: tuple[str, ...],
        db=None,
        sio: Optional[socketio.AsyncServer] = None
    ):
        """
        Initialize the handler.

        Args:
            allowed_origins: Origins allowed to open a socket connection
            db: Database handle used to resolve session tokens
            sio: Pre-built Socket.io server (optional, mostly for tests)
        """
        self.sio = sio or socketio.AsyncServer(
            async_mode="asgi",
            cors_allowed_origins=list(allowed_origins),
            cors_credentials=True,
        )
        self.db = db
        self._register_events()

    def _register_events(self):
        self.sio.on("connect", self.on_connect)
        self.sio.on("disconnect", self.on_disconnect)
        self.sio.on("track_order", self.on_track_order)
        self.sio.on("untrack_order", self.on_untrack_order)
        self.sio.on("driver_location", self.on_driver_location)

    # Event Handlers

    async def on_connect(self, sid, environ, auth=None):
        """
        Resolve the optional session token sent as {'token': str}.

        Anonymous clients may connect and track orders.
        """
        token = auth.get("token") if isinstance(auth, dict) else None
        user = await get_user_for_token(self.db, token) if self.db is not None else None
        await self.sio.save_session(sid, {
            "user_id": user["_id"] if user else None,
            "role": user.get("role") if user else None
        })
        logger.info(f"Client connected: {sid} ({user['_id'] if user else 'anonymous'})")

    async def on_disconnect(self, sid, reason=None):
        logger.info(f"Client disconnected: {sid}")

    async def on_track_order(self, sid, data):
        """
        Join an order room to receive delivery updates.

        Args:
            sid: Socket.io session ID
            data: {'order_id': str}
        """
        order_id = (data or {}).get("order_id")
        if not order_id:
            await self.sio.emit("error", {"message": "order_id is required"}, room=sid)
            return

        await self.sio.enter_room(sid, order_room(order_id))
        logger.info(f"Client {sid} tracking order {order_id}")
        await self.sio.emit("tracking", {
            "order_id": order_id,
            "room": order_room(order_id)
        }, room=sid)

    async def on_untrack_order(self, sid, data):
        """Leave an order room."""
        order_id = (data or {}).get("order_id")
        if not order_id:
            await self.sio.emit("error", {"message": "order_id is required"}, room=sid)
            return

        await self.sio.leave_room(sid, order_room(order_id))
        await self.sio.emit("untracked", {"order_id": order_id}, room=sid)

    async def on_driver_location(self, sid, data):
        """
        Relay a driver's position to everyone tracking the order.

        Args:
            sid: Socket.io session ID of the driver
            data: {'order_id': str, 'lat': float, 'lng': float}
        """
        data = data or {}
        order_id = data.get("order_id")
        lat, lng = data.get("lat"), data.get("lng")
        if not order_id or lat is None or lng is None:
            await self.sio.emit("error", {
                "message": "order_id, lat and lng are required"
            }, room=sid)
            return

        session = await self.sio.get_session(sid)
        if session.get("role") != "driver":
            logger.warning(f"Rejected driver_location from {sid} for order {order_id}")
            await self.sio.emit("error", {"message": "Driver authentication required"}, room=sid)
            return

        await self.emit_location(order_id, lat, lng, skip_sid=sid)

    # Server-side pushes used by HTTP routes

    async def emit_order_status(self, order_id: str, status: str, **extra):
        """
        Push an order status change to clients tracking the order.

        Args:
            order_id: Order identifier
            status: New order status
            **extra: Additional fields for the event payload
        """
        await self.sio.emit("order:status", {
            "order_id": order_id,
            "status": status,
            **extra
        }, room=order_room(order_id))
        logger.info(f"Order {order_id} status pushed: {status}")

    async def emit_location(self, order_id: str, lat: float, lng: float, skip_sid: Optional[str] = None):
        """Push a driver location update to clients tracking the order."""
        await self.sio.emit("delivery:location", {
            "order_id": order_id,
            "lat": lat,
            "lng": lng
        }, room=order_room(order_id), skip_sid=skip_sid)
