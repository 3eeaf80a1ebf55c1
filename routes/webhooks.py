"""
Stripe Webhook Route

Receives the raw request body: the signature covers the exact bytes Stripe
sent, so this router is mounted without body parsing.
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request

from context import AppContext
from services.orders import mark_order_paid
from services.payments import SignatureError, verify_stripe_signature

logger = logging.getLogger(__name__)


def create_router(ctx: AppContext) -> APIRouter:
    router = APIRouter(tags=["webhooks"])
    settings = ctx.settings

    @router.post("")
    async def stripe_webhook(request: Request):
        if not settings.stripe_webhook_secret:
            raise HTTPException(status_code=503, detail="Stripe webhooks are not configured")

        payload = await request.body()
        try:
            verify_stripe_signature(
                payload,
                request.headers.get("stripe-signature"),
                settings.stripe_webhook_secret
            )
        except SignatureError as e:
            logger.warning(f"Stripe webhook rejected: {e}")
            raise HTTPException(status_code=400, detail=f"Webhook Error: {e}")

        try:
            event = json.loads(payload)
            if not isinstance(event, dict):
                raise ValueError("event must be an object")
        except ValueError:
            raise HTTPException(status_code=400, detail="Webhook Error: invalid JSON payload")

        event_type = event.get("type")
        logger.info(f"Stripe event received: {event_type} ({event.get('id')})")

        if event_type == "payment_intent.succeeded":
            intent = event.get("data", {}).get("object", {})
            order_id = (intent.get("metadata") or {}).get("order_id")
            if order_id:
                await mark_order_paid(ctx.db, ctx.delivery, order_id, "stripe", intent.get("id"))
            else:
                logger.warning(f"Payment intent {intent.get('id')} has no order_id metadata")

        return {"received": True}

    return router
