"""
Payment Routes

Client-side payment helpers. Razorpay Checkout hands the browser a signed
result which is verified here before the order is marked paid.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from context import AppContext
from middleware import body_as
from models import RazorpayVerifyRequest
from services.auth import require_user
from services.orders import mark_order_paid
from services.payments import SignatureError, verify_razorpay_payment

logger = logging.getLogger(__name__)


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["payments"])
    db = ctx.db
    settings = ctx.settings

    @router.get("/config")
    async def payment_config():
        """Public keys the frontend needs to open a checkout."""
        return {"razorpay_key_id": settings.razorpay_key_id}

    @router.post("/razorpay/verify")
    async def verify_razorpay(
        payload: RazorpayVerifyRequest = Depends(body_as(RazorpayVerifyRequest)),
        user: dict = Depends(require_user(db))
    ):
        if not settings.razorpay_key_secret:
            raise HTTPException(status_code=503, detail="Razorpay is not configured")

        try:
            verify_razorpay_payment(
                payload.razorpay_order_id,
                payload.razorpay_payment_id,
                payload.razorpay_signature,
                settings.razorpay_key_secret
            )
        except SignatureError as e:
            logger.warning(f"Razorpay verification failed for order {payload.order_id}: {e}")
            raise HTTPException(status_code=400, detail="Invalid payment signature")

        order = await db["orders"].find_one({"_id": payload.order_id})
        if not order or order["user_id"] != user["_id"]:
            raise HTTPException(status_code=404, detail="Order not found")

        await mark_order_paid(db, ctx.delivery, payload.order_id, "razorpay", payload.razorpay_payment_id)
        return {"ok": True, "order_id": payload.order_id, "payment_status": "paid"}

    return router
