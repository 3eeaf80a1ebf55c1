"""
Order Routes

Checkout from the cart, order lookup and status changes. Status changes
are pushed to clients tracking the order over Socket.io.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pymongo import ReturnDocument

from context import AppContext
from db import new_id, public_doc
from middleware import body_as
from models import CreateOrderRequest, OrderStatusRequest
from services.auth import require_user
from services.orders import update_order_status
from utils import utc_now_iso

logger = logging.getLogger(__name__)

MAX_ORDERS = 100


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["orders"])
    db = ctx.db
    current_user = require_user(db)

    async def get_own_order(order_id: str, user: dict) -> dict:
        order = await db["orders"].find_one({"_id": order_id})
        if not order or order["user_id"] != user["_id"]:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    @router.post("", status_code=201)
    async def create_order(
        payload: CreateOrderRequest = Depends(body_as(CreateOrderRequest)),
        user: dict = Depends(current_user)
    ):
        """
        Place an order from the caller's cart.

        The cart is emptied in the same update that reads it. Lines added
        after that stay in the cart for the next order.
        """
        now = utc_now_iso()
        cart = await db["carts"].find_one_and_update(
            {"_id": user["_id"]},
            {"$set": {"items": [], "updated_at": now}},
            return_document=ReturnDocument.BEFORE
        )
        items = (cart or {}).get("items", [])
        if not items:
            raise HTTPException(status_code=400, detail="Cart is empty")

        order = {
            "_id": new_id(),
            "user_id": user["_id"],
            "items": items,
            "total": round(sum(i["price"] * i["quantity"] for i in items), 2),
            "address": payload.address,
            "phone": payload.phone,
            "status": "placed",
            "payment_status": "pending",
            "created_at": now,
            "updated_at": now
        }
        try:
            await db["orders"].insert_one(order)
        except Exception:
            await db["carts"].update_one(
                {"_id": user["_id"]},
                {"$push": {"items": {"$each": items}}}
            )
            raise
        logger.info(f"Order {order['_id']} placed by {user['_id']}")

        return public_doc(order)

    @router.get("")
    async def list_orders(user: dict = Depends(current_user)):
        orders = await db["orders"].find({"user_id": user["_id"]}).sort(
            "created_at", -1
        ).to_list(length=MAX_ORDERS)
        return [public_doc(o) for o in orders]

    @router.get("/{order_id}")
    async def get_order(order_id: str, user: dict = Depends(current_user)):
        return public_doc(await get_own_order(order_id, user))

    @router.patch("/{order_id}/status")
    async def set_status(
        order_id: str,
        payload: OrderStatusRequest = Depends(body_as(OrderStatusRequest)),
        user: dict = Depends(current_user)
    ):
        await get_own_order(order_id, user)
        order = await update_order_status(db, ctx.delivery, order_id, payload.status)
        if order is None:
            raise HTTPException(status_code=404, detail="Order not found")
        return public_doc(order)

    return router
