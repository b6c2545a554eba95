# app/services/stripe_service.py
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)

STRIPE_API_BASE = "https://api.stripe.com"
SIGNATURE_TOLERANCE_SECONDS = 300


class StripeError(Exception):
    """A Stripe API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class StripeNotConfiguredError(StripeError):
    pass


class WebhookSignatureError(StripeError):
    pass


def _flatten(data: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """Stripe's form encoding: nested keys become a[b][c], lists a[0][b]."""
    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(_flatten(value, name))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                item_name = f"{name}[{index}]"
                if isinstance(item, dict):
                    pairs.extend(_flatten(item, item_name))
                else:
                    pairs.append((item_name, str(item)))
        elif isinstance(value, bool):
            pairs.append((name, "true" if value else "false"))
        else:
            pairs.append((name, str(value)))
    return pairs


class StripeService:
    def __init__(self, secret_key: str, webhook_secret: str = "",
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 30.0):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self._transport = transport
        self._timeout = timeout

    @classmethod
    def from_settings(cls) -> "StripeService":
        return cls(settings.STRIPE_SECRET_KEY, settings.STRIPE_WEBHOOK_SECRET)

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)

    async def _request(self, method: str, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self.is_configured:
            raise StripeNotConfiguredError("Stripe is not configured")

        headers = {"Authorization": f"Bearer {self.secret_key}"}
        form = None
        if data:
            form = urlencode(_flatten(data))
            headers["Content-Type"] = "application/x-www-form-urlencoded"

        try:
            async with httpx.AsyncClient(base_url=STRIPE_API_BASE, timeout=self._timeout,
                                         transport=self._transport) as client:
                response = await client.request(method, path, content=form, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"❌ Stripe request {method} {path} failed: {e}")
            raise StripeError(f"Could not reach Stripe: {e}")

        body = response.json() if response.content else {}
        if response.status_code >= 400:
            error = body.get("error", {}) if isinstance(body, dict) else {}
            message = error.get("message") or f"HTTP {response.status_code}"
            logger.error(f"❌ Stripe {method} {path} error: {message}")
            raise StripeError(message, status_code=response.status_code, code=error.get("code"))
        return body

    async def create_customer(self, email: str, name: Optional[str] = None,
                              metadata: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return await self._request("POST", "/v1/customers", {"email": email, "name": name, "metadata": metadata or {}})

    async def create_checkout_session(self, customer_id: str, price_id: str, success_url: str,
                                      cancel_url: str, metadata: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        return await self._request("POST", "/v1/checkout/sessions", {
            "mode": "subscription",
            "customer": customer_id,
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
        })

    async def retrieve_checkout_session(self, session_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v1/checkout/sessions/{session_id}")

    async def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v1/subscriptions/{subscription_id}")

    async def cancel_subscription_at_period_end(self, subscription_id: str) -> Dict[str, Any]:
        return await self._request("POST", f"/v1/subscriptions/{subscription_id}", {"cancel_at_period_end": True})

    async def create_payment_intent(self, amount_cents: int, currency: str = "usd",
                                    metadata: Optional[Dict[str, str]] = None,
                                    receipt_email: Optional[str] = None) -> Dict[str, Any]:
        return await self._request("POST", "/v1/payment_intents", {
            "amount": amount_cents,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata or {},
            "receipt_email": receipt_email,
        })

    def construct_event(self, payload: bytes, signature_header: Optional[str],
                        now: Optional[float] = None) -> Dict[str, Any]:
        """
        Verify a webhook's Stripe-Signature header and return the parsed event.
        The header looks like ``t=1492774577,v1=5257a869e7ec...``; the v1 value
        is an HMAC-SHA256 of ``"{t}.{payload}"`` keyed by the webhook secret.
        """
        if not self.webhook_secret:
            raise StripeNotConfiguredError("Stripe webhook secret is not configured")
        if not signature_header:
            raise WebhookSignatureError("Missing Stripe-Signature header")

        timestamp: Optional[str] = None
        signatures: List[str] = []
        for part in signature_header.split(","):
            key, _, value = part.strip().partition("=")
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)

        if not timestamp or not signatures:
            raise WebhookSignatureError("Malformed Stripe-Signature header")

        try:
            ts = int(timestamp)
        except ValueError:
            raise WebhookSignatureError("Malformed Stripe-Signature timestamp")

        signed_payload = f"{timestamp}.".encode("utf-8") + payload
        expected = hmac.new(self.webhook_secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()
        if not any(hmac.compare_digest(expected, sig) for sig in signatures):
            raise WebhookSignatureError("Signature mismatch")

        now = now if now is not None else time.time()
        if abs(now - ts) > SIGNATURE_TOLERANCE_SECONDS:
            raise WebhookSignatureError("Timestamp outside the tolerance zone")

        try:
            return json.loads(payload)
        except ValueError:
            raise WebhookSignatureError("Webhook payload is not valid JSON")


stripe_service = StripeService.from_settings()


def get_stripe_service() -> StripeService:
    return stripe_service
