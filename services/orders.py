"""
Order Service

Order state changes shared by the HTTP routes and the payment webhooks.
Every change is pushed to clients tracking the order.
"""

import logging
from typing import Optional

from utils import utc_now_iso

logger = logging.getLogger(__name__)


async def update_order_status(db, delivery, order_id: str, status: str) -> Optional[dict]:
    """
    Set an order's status and notify tracking clients.

    Args:
        db: Database handle
        delivery: DeliverySocketHandler used to push the event
        order_id: Order identifier
        status: New status

    Returns:
        Updated order document, or None if the order does not exist
    """
    result = await db["orders"].update_one(
        {"_id": order_id},
        {"$set": {"status": status, "updated_at": utc_now_iso()}}
    )
    if result.matched_count == 0:
        return None

    await delivery.emit_order_status(order_id, status)
    return await db["orders"].find_one({"_id": order_id})


async def mark_order_paid(db, delivery, order_id: str, provider: str, payment_id: Optional[str]) -> bool:
    """
    Record a captured payment and confirm the order.

    The update only matches an order that is not paid yet, so repeated or
    concurrent notifications for the same order change it and emit once.

    Args:
        db: Database handle
        delivery: DeliverySocketHandler used to push the event
        order_id: Order identifier from the provider's metadata
        provider: "stripe" or "razorpay"
        payment_id: Provider payment reference

    Returns:
        True if the order exists, False otherwise
    """
    result = await db["orders"].update_one(
        {"_id": order_id, "payment_status": {"$ne": "paid"}},
        {"$set": {
            "payment_status": "paid",
            "payment_provider": provider,
            "payment_id": payment_id,
            "status": "confirmed",
            "updated_at": utc_now_iso()
        }}
    )
    if result.matched_count == 0:
        if await db["orders"].find_one({"_id": order_id}) is None:
            logger.warning(f"{provider} payment {payment_id} references unknown order {order_id}")
            return False
        logger.info(f"Order {order_id} already paid, ignoring duplicate {provider} event")
        return True

    await delivery.emit_order_status(order_id, "confirmed", payment_status="paid")
    logger.info(f"Order {order_id} paid via {provider} ({payment_id})")
    return True
