import hashlib
import hmac
import json
import time
from urllib.parse import parse_qs

import httpx
import pytest

from app.services.stripe_service import (
    StripeError,
    StripeNotConfiguredError,
    StripeService,
    WebhookSignatureError,
    _flatten,
)

WEBHOOK_SECRET = "whsec_test"


def signature_header(payload: bytes, timestamp: int, secret: str = WEBHOOK_SECRET) -> str:
    signed = f"{timestamp}.".encode() + payload
    return f"t={timestamp},v1={hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()}"


def test_construct_event_accepts_valid_signature():
    service = StripeService("sk_test", WEBHOOK_SECRET)
    payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed"}).encode()
    now = int(time.time())

    event = service.construct_event(payload, signature_header(payload, now), now=now)
    assert event["id"] == "evt_1"


def test_construct_event_rejects_tampered_payload():
    service = StripeService("sk_test", WEBHOOK_SECRET)
    payload = b'{"id": "evt_1"}'
    now = int(time.time())
    with pytest.raises(WebhookSignatureError):
        service.construct_event(b'{"id": "evt_2"}', signature_header(payload, now), now=now)


def test_construct_event_rejects_old_timestamp():
    service = StripeService("sk_test", WEBHOOK_SECRET)
    payload = b'{"id": "evt_1"}'
    signed_at = int(time.time()) - 3600
    with pytest.raises(WebhookSignatureError):
        service.construct_event(payload, signature_header(payload, signed_at))


def test_construct_event_requires_header_and_secret():
    with pytest.raises(WebhookSignatureError):
        StripeService("sk_test", WEBHOOK_SECRET).construct_event(b"{}", None)
    with pytest.raises(WebhookSignatureError):
        StripeService("sk_test", WEBHOOK_SECRET).construct_event(b"{}", "v1=abc")
    with pytest.raises(StripeNotConfiguredError):
        StripeService("sk_test", "").construct_event(b"{}", "t=1,v1=abc")


def test_flatten_nested_params():
    assert _flatten({
        "mode": "subscription",
        "line_items": [{"price": "price_1", "quantity": 1}],
        "metadata": {"user_id": "u1"},
        "automatic_payment_methods": {"enabled": True},
        "receipt_email": None,
    }) == [
        ("mode", "subscription"),
        ("line_items[0][price]", "price_1"),
        ("line_items[0][quantity]", "1"),
        ("metadata[user_id]", "u1"),
        ("automatic_payment_methods[enabled]", "true"),
    ]


async def test_create_payment_intent_is_form_encoded():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["path"] = request.url.path
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"id": "pi_1", "client_secret": "pi_1_secret"})

    service = StripeService("sk_test", transport=httpx.MockTransport(handler))
    intent = await service.create_payment_intent(32204, metadata={"invoice_id": "inv-1"})

    assert intent["id"] == "pi_1"
    assert seen["auth"] == "Bearer sk_test"
    assert seen["path"] == "/v1/payment_intents"
    assert seen["form"]["amount"] == ["32204"]
    assert seen["form"]["currency"] == ["usd"]
    assert seen["form"]["metadata[invoice_id]"] == ["inv-1"]


async def test_stripe_error_message():
    def handler(request):
        return httpx.Response(402, json={"error": {"message": "Your card was declined.", "code": "card_declined"}})

    service = StripeService("sk_test", transport=httpx.MockTransport(handler))
    with pytest.raises(StripeError) as exc_info:
        await service.retrieve_subscription("sub_1")
    assert exc_info.value.code == "card_declined"
    assert str(exc_info.value) == "Your card was declined."


async def test_unconfigured_stripe():
    with pytest.raises(StripeNotConfiguredError):
        await StripeService("").create_customer("a@example.com")
