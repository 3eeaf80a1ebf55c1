"""
Payment Signature Service

Verifies Stripe and Razorpay signatures over the exact bytes that were
signed. Callers must pass the raw request body, never a re-serialized one.
"""

import hashlib
import hmac
import time
from typing import Optional

# Stripe rejects events whose timestamp is older than this (seconds)
STRIPE_TOLERANCE_SECONDS = 300


class SignatureError(ValueError):
    """Raised when a payment signature does not verify."""


def _hmac_sha256_hex(secret: str, payload: bytes) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def _digest_matches(expected: str, signature: str) -> bool:
    # compare_digest only accepts ASCII str, headers can carry anything
    return hmac.compare_digest(expected.encode(), signature.encode("utf-8", "surrogatepass"))


def verify_stripe_signature(
    payload: bytes,
    header: Optional[str],
    secret: str,
    tolerance: int = STRIPE_TOLERANCE_SECONDS,
    now: Optional[float] = None
) -> None:
    """
    Verify a Stripe-Signature header.

    The header looks like "t=<unix ts>,v1=<hex>[,v1=<hex>...]" and each v1
    is HMAC-SHA256 of "<t>.<payload>" with the endpoint secret.

    Args:
        payload: Raw request body
        header: Stripe-Signature header value
        secret: Webhook endpoint secret
        tolerance: Maximum event age in seconds
        now: Current unix time (defaults to time.time())

    Raises:
        SignatureError: If the header is missing, malformed, stale or wrong
    """
    if not header:
        raise SignatureError("Missing Stripe-Signature header")

    timestamp = None
    signatures = []
    for part in header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not signatures:
        raise SignatureError("Malformed Stripe-Signature header")

    try:
        ts = int(timestamp)
    except ValueError:
        raise SignatureError("Malformed Stripe-Signature timestamp")

    current = time.time() if now is None else now
    if tolerance and abs(current - ts) > tolerance:
        raise SignatureError("Stripe-Signature timestamp outside tolerance")

    expected = _hmac_sha256_hex(secret, timestamp.encode() + b"." + payload)
    if not any(_digest_matches(expected, sig) for sig in signatures):
        raise SignatureError("Stripe signature mismatch")


def verify_razorpay_webhook(payload: bytes, signature: Optional[str], secret: str) -> None:
    """
    Verify an X-Razorpay-Signature header (hex HMAC-SHA256 of the body).

    Raises:
        SignatureError: If the signature is missing or wrong
    """
    if not signature:
        raise SignatureError("Missing X-Razorpay-Signature header")
    if not _digest_matches(_hmac_sha256_hex(secret, payload), signature):
        raise SignatureError("Razorpay webhook signature mismatch")


def verify_razorpay_payment(
    razorpay_order_id: str,
    razorpay_payment_id: str,
    signature: str,
    key_secret: str
) -> None:
    """
    Verify the signature Razorpay Checkout returns to the client.

    Raises:
        SignatureError: If the signature is wrong
    """
    message = f"{razorpay_order_id}|{razorpay_payment_id}".encode()
    if not _digest_matches(_hmac_sha256_hex(key_secret, message), signature):
        raise SignatureError("Razorpay payment signature mismatch")
