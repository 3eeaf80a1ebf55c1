"""
Razorpay Webhook Route

Like the Stripe webhook, reads the unparsed body so the HMAC can be checked
against the bytes Razorpay signed.
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request

from context import AppContext
from services.orders import mark_order_paid
from services.payments import SignatureError, verify_razorpay_webhook

logger = logging.getLogger(__name__)


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["webhooks"])
    settings = ctx.settings

    @router.post("")
    async def razorpay_webhook(request: Request):
        if not settings.razorpay_webhook_secret:
            raise HTTPException(status_code=503, detail="Razorpay webhooks are not configured")

        payload = await request.body()
        try:
            verify_razorpay_webhook(
                payload,
                request.headers.get("x-razorpay-signature"),
                settings.razorpay_webhook_secret
            )
        except SignatureError as e:
            logger.warning(f"Razorpay webhook rejected: {e}")
            raise HTTPException(status_code=400, detail="Invalid signature")

        try:
            event = json.loads(payload)
            if not isinstance(event, dict):
                raise ValueError("event must be an object")
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON payload")

        event_type = event.get("event")
        logger.info(f"Razorpay event received: {event_type}")

        if event_type == "payment.captured":
            payment = event.get("payload", {}).get("payment", {}).get("entity", {})
            order_id = (payment.get("notes") or {}).get("order_id")
            if order_id:
                await mark_order_paid(ctx.db, ctx.delivery, order_id, "razorpay", payment.get("id"))
            else:
                logger.warning(f"Razorpay payment {payment.get('id')} has no order_id note")

        return {"status": "ok"}

    return router
