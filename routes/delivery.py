"""
Delivery Routes

Delivery tracking over HTTP. Location updates posted here by drivers are
relayed to clients tracking the order through the delivery socket handler.
"""

from fastapi import APIRouter, Depends, HTTPException

from context import AppContext
from middleware import body_as
from models import LocationRequest
from services.auth import require_role
from utils import utc_now_iso


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["delivery"])
    db = ctx.db
    current_driver = require_role(db, "driver")

    @router.get("/{order_id}")
    async def get_tracking(order_id: str):
        """
        Current delivery state of an order.

        Returns:
            Dict with order status and the last known driver location
        """
        order = await db["orders"].find_one({"_id": order_id})
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")

        return {
            "order_id": order_id,
            "status": order["status"],
            "location": order.get("driver_location")
        }

    @router.post("/{order_id}/location")
    async def update_location(
        order_id: str,
        payload: LocationRequest = Depends(body_as(LocationRequest)),
        driver: dict = Depends(current_driver)
    ):
        location = {
            "lat": payload.lat,
            "lng": payload.lng,
            "driver_id": driver["_id"],
            "updated_at": utc_now_iso()
        }
        result = await db["orders"].update_one(
            {"_id": order_id},
            {"$set": {"driver_location": location}}
        )
        if result.matched_count == 0:
            raise HTTPException(status_code=404, detail="Order not found")

        await ctx.delivery.emit_location(order_id, payload.lat, payload.lng)
        return {"order_id": order_id, "location": location}

    return router
