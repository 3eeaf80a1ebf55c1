"""Tests for the raw-body payment webhook routes."""

import hashlib
import hmac
import time

import pytest
from fastapi.testclient import TestClient

from app import create_api
from context import AppContext


def stripe_header(payload: bytes, secret: str = "whsec_test", timestamp: int | None = None) -> str:
    ts = str(timestamp or int(time.time()))
    sig = hmac.new(secret.encode(), ts.encode() + b"." + payload, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def razorpay_header(payload: bytes, secret: str = "rzp_webhook_secret") -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


@pytest.fixture
def pending_order(fake_db):
    order = {
        "_id": "order1",
        "user_id": "u1",
        "items": [],
        "total": 12.0,
        "status": "placed",
        "payment_status": "pending",
    }
    fake_db["orders"].docs.append(order)
    return order


# Non-canonical spacing: re-serializing it would break the signature
STRIPE_EVENT = (
    b'{"id": "evt_1",  "type":"payment_intent.succeeded",\n'
    b' "data": {"object": {"id": "pi_1", "metadata": {"order_id": "order1"}}}}'
)

RAZORPAY_EVENT = (
    b'{"event":"payment.captured",  "payload":{"payment":{"entity":'
    b'{"id":"pay_1","notes":{"order_id":"order1"}}}}}'
)


def test_stripe_webhook_verifies_raw_bytes(client, fake_db, delivery, pending_order):
    response = client.post(
        "/api/webhooks",
        content=STRIPE_EVENT,
        headers={"Content-Type": "application/json", "Stripe-Signature": stripe_header(STRIPE_EVENT)},
    )

    assert response.status_code == 200
    assert response.json() == {"received": True}

    order = fake_db["orders"].docs[0]
    assert order["payment_status"] == "paid"
    assert order["payment_provider"] == "stripe"
    assert order["payment_id"] == "pi_1"
    assert order["status"] == "confirmed"
    delivery.sio.emit.assert_awaited_with(
        "order:status",
        {"order_id": "order1", "status": "confirmed", "payment_status": "paid"},
        room="order_order1",
    )


def test_stripe_webhook_rejects_tampered_body(client, fake_db, pending_order):
    header = stripe_header(STRIPE_EVENT)
    tampered = STRIPE_EVENT.replace(b"order1", b"order2")

    response = client.post(
        "/api/webhooks",
        content=tampered,
        headers={"Content-Type": "application/json", "Stripe-Signature": header},
    )

    assert response.status_code == 400
    assert fake_db["orders"].docs[0]["payment_status"] == "pending"


def test_stripe_webhook_rejects_missing_signature(client):
    response = client.post("/api/webhooks", content=STRIPE_EVENT)

    assert response.status_code == 400


def test_stripe_webhook_rejects_stale_timestamp(client, pending_order):
    header = stripe_header(STRIPE_EVENT, timestamp=int(time.time()) - 3600)

    response = client.post(
        "/api/webhooks", content=STRIPE_EVENT, headers={"Stripe-Signature": header}
    )

    assert response.status_code == 400


def test_stripe_webhook_rejects_non_ascii_signature(client, fake_db, pending_order):
    header = f"t={int(time.time())},v1=éé".encode("utf-8")

    response = client.post(
        "/api/webhooks", content=STRIPE_EVENT, headers={"Stripe-Signature": header}
    )

    assert response.status_code == 400
    assert fake_db["orders"].docs[0]["payment_status"] == "pending"


def test_stripe_webhook_ignores_other_events(client, fake_db, delivery, pending_order):
    payload = b'{"id": "evt_2", "type": "charge.refunded", "data": {"object": {}}}'

    response = client.post(
        "/api/webhooks", content=payload, headers={"Stripe-Signature": stripe_header(payload)}
    )

    assert response.status_code == 200
    assert fake_db["orders"].docs[0]["payment_status"] == "pending"
    delivery.sio.emit.assert_not_awaited()


def test_razorpay_webhook_verifies_raw_bytes(client, fake_db, pending_order):
    response = client.post(
        "/api/webhooks/razorpay",
        content=RAZORPAY_EVENT,
        headers={
            "Content-Type": "application/json",
            "X-Razorpay-Signature": razorpay_header(RAZORPAY_EVENT),
        },
    )

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    order = fake_db["orders"].docs[0]
    assert order["payment_status"] == "paid"
    assert order["payment_provider"] == "razorpay"


def test_razorpay_webhook_rejects_bad_signature(client, fake_db, pending_order):
    response = client.post(
        "/api/webhooks/razorpay",
        content=RAZORPAY_EVENT,
        headers={"X-Razorpay-Signature": "0" * 64},
    )

    assert response.status_code == 400
    assert fake_db["orders"].docs[0]["payment_status"] == "pending"


def test_razorpay_webhook_rejects_non_ascii_signature(client, fake_db, pending_order):
    response = client.post(
        "/api/webhooks/razorpay",
        content=RAZORPAY_EVENT,
        headers={"X-Razorpay-Signature": "é".encode("utf-8")},
    )

    assert response.status_code == 400
    assert fake_db["orders"].docs[0]["payment_status"] == "pending"


def test_duplicate_payment_event_is_idempotent(client, fake_db, delivery, pending_order):
    headers = {"X-Razorpay-Signature": razorpay_header(RAZORPAY_EVENT)}

    client.post("/api/webhooks/razorpay", content=RAZORPAY_EVENT, headers=headers)
    client.post("/api/webhooks/razorpay", content=RAZORPAY_EVENT, headers=headers)

    assert delivery.sio.emit.await_count == 1


def test_webhook_without_configured_secret(settings, fake_db, delivery):
    ctx = AppContext(
        settings=settings.model_copy(update={"stripe_webhook_secret": None}),
        db=fake_db,
        delivery=delivery,
    )
    response = TestClient(create_api(ctx)).post("/api/webhooks", content=STRIPE_EVENT)

    assert response.status_code == 503
