"""
Services Module

Contains service layer implementations shared by the route modules.
"""

from services.auth import (
    hash_password,
    verify_password,
    create_session,
    delete_session,
    get_bearer_token,
    get_user_for_token,
    require_role,
    require_user
)
from services.payments import (
    SignatureError,
    verify_stripe_signature,
    verify_razorpay_webhook,
    verify_razorpay_payment
)
from services.orders import (
    update_order_status,
    mark_order_paid
)

__all__ = [
    # Auth
    "hash_password",
    "verify_password",
    "create_session",
    "delete_session",
    "get_bearer_token",
    "get_user_for_token",
    "require_role",
    "require_user",
    # Payments
    "SignatureError",
    "verify_stripe_signature",
    "verify_razorpay_webhook",
    "verify_razorpay_payment",
    # Orders
    "update_order_status",
    "mark_order_paid",
]
