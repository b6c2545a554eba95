import hashlib
import hmac
import json
import time

import pytest

from app.services.stripe_service import StripeService, get_stripe_service

WEBHOOK_SECRET = "whsec_test"


@pytest.fixture()
def stripe_webhooks(app):
    service = StripeService("sk_test", WEBHOOK_SECRET)
    app.dependency_overrides[get_stripe_service] = lambda: service
    return service


def signed(event):
    payload = json.dumps(event).encode()
    timestamp = int(time.time())
    signature = hmac.new(WEBHOOK_SECRET.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256).hexdigest()
    return payload, {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


async def test_profile_update(client):
    r = await client.patch("/api/v1/users/me", json={"business_name": "Ace Heating", "monthly_income_target": 6000})
    assert r.status_code == 200
    assert r.json()["business_name"] == "Ace Heating"

    r = await client.patch("/api/v1/users/me", json={})
    assert r.status_code == 400


async def test_onboarding_completes_after_every_step(client):
    steps = (await client.get("/api/v1/users/me/onboarding")).json()["steps"]
    assert set(steps) == {"welcome", "income", "allocation", "goals", "complete"}

    for step in steps:
        r = await client.patch("/api/v1/users/me/onboarding", json={"step": step})
    assert r.json()["onboarding_completed"] is True

    r = await client.patch("/api/v1/users/me/onboarding", json={"step": "taxes"})
    assert r.status_code == 422


async def test_checkout_webhook_upgrades_and_cancellation_downgrades(client, user, stripe_webhooks):
    payload, headers = signed({
        "id": "evt_1",
        "type": "checkout.session.completed",
        "data": {"object": {"customer": "cus_123", "subscription": "sub_123", "metadata": {"user_id": str(user.id)}}},
    })
    r = await client.post("/api/v1/subscription/webhook", content=payload, headers=headers)
    assert r.status_code == 200
    assert r.json() == {"received": True, "event_type": "checkout.session.completed"}

    status = (await client.get("/api/v1/users/me/subscription")).json()
    assert status["tier"] == "pro"
    assert status["is_pro"] is True

    payload, headers = signed({
        "id": "evt_2",
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": "sub_123", "customer": "cus_123"}},
    })
    r = await client.post("/api/v1/subscription/webhook", content=payload, headers=headers)
    assert r.status_code == 200

    status = (await client.get("/api/v1/subscription/")).json()
    assert status["tier"] == "free"
    assert status["is_pro"] is False

    titles = [n["title"] for n in (await client.get("/api/v1/notifications/")).json()]
    assert set(titles) == {"Welcome to Stackr Pro", "Subscription ended"}


async def test_webhook_rejects_bad_signature(client, stripe_webhooks):
    payload, headers = signed({"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {}}})
    headers["Stripe-Signature"] = headers["Stripe-Signature"].split(",v1=")[0] + ",v1=" + "0" * 64
    r = await client.post("/api/v1/subscription/webhook", content=payload, headers=headers)
    assert r.status_code == 400


async def test_unhandled_event_is_acknowledged(client, stripe_webhooks):
    payload, headers = signed({"id": "evt_9", "type": "charge.refunded", "data": {"object": {}}})
    r = await client.post("/api/v1/subscription/webhook", content=payload, headers=headers)
    assert r.json()["event_type"] == "charge.refunded"


async def test_checkout_without_stripe(client):
    r = await client.post("/api/v1/subscription/checkout-session", json={"price_id": "price_1"})
    assert r.status_code == 503


async def test_health(anon_client):
    r = await anon_client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_subscription_period_end_is_naive_utc():
    from datetime import datetime

    from app.api.v1.routes.subscription import invoice_period_end, subscription_period_end

    assert subscription_period_end({"current_period_end": 1735689600}) == datetime(2025, 1, 1)
    assert subscription_period_end({"items": {"data": [{"current_period_end": 1735693200}]}}) == datetime(2025, 1, 1, 1)
    assert invoice_period_end({"lines": {"data": [{"period": {"end": 1735689600}}]}}) == datetime(2025, 1, 1)
    assert subscription_period_end({}) is None


async def test_register_login_and_read_profile(anon_client):
    r = await anon_client.post("/api/v1/auth/register", json={
        "email": "plumber@example.com", "password": "s3cure-Passw0rd", "full_name": "Pat Plumber",
    })
    assert r.status_code == 201
    assert r.json()["subscription_tier"] == "free"

    r = await anon_client.post("/api/v1/auth/jwt/login",
                               data={"username": "plumber@example.com", "password": "s3cure-Passw0rd"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = await anon_client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["full_name"] == "Pat Plumber"

    assert (await anon_client.get("/api/v1/users/me")).status_code == 401
