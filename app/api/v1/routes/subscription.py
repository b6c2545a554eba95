# app/api/v1/routes/subscription.py
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.api.v1.routes.users import subscription_status
from app.core.auth import User
from app.core.config import settings
from app.core.database import get_async_session
from app.crud.user import (
    get_user_by_id, get_user_by_stripe_customer, update_user_fields, activate_pro, downgrade_to_free,
)
from app.schemas.billing import CheckoutSessionRequest, CheckoutSessionResponse, VerifySessionResponse, WebhookAck
from app.schemas.user import SubscriptionStatus
from app.services.stripe_service import (
    StripeService, StripeError, StripeNotConfiguredError, WebhookSignatureError, get_stripe_service,
)
from app.utils.notifications import notify_subscription_change

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscription", tags=["subscription"])


def stripe_http_error(error: StripeError) -> HTTPException:
    if isinstance(error, StripeNotConfiguredError):
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Billing is not configured")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Stripe error: {error}")


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    return datetime.fromtimestamp(value, timezone.utc).replace(tzinfo=None) if value else None


def subscription_period_end(subscription: Dict[str, Any]) -> Optional[datetime]:
    """Newer API versions report the period on the subscription items."""
    if subscription.get("current_period_end"):
        return _timestamp(subscription["current_period_end"])
    items = (subscription.get("items") or {}).get("data") or []
    if items and items[0].get("current_period_end"):
        return _timestamp(items[0]["current_period_end"])
    return None


def invoice_period_end(invoice: Dict[str, Any]) -> Optional[datetime]:
    lines = (invoice.get("lines") or {}).get("data") or []
    if lines and (lines[0].get("period") or {}).get("end"):
        return _timestamp(lines[0]["period"]["end"])
    return _timestamp(invoice.get("period_end"))


@router.get("/", response_model=SubscriptionStatus)
async def read_subscription(user: User = Depends(get_current_user)):
    return subscription_status(user)


@router.post("/checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    stripe: StripeService = Depends(get_stripe_service),
):
    price_id = body.price_id or settings.STRIPE_PRO_PRICE_ID
    if not price_id:
        raise HTTPException(status_code=503, detail="No subscription price is configured")

    try:
        if not user.stripe_customer_id:
            customer = await stripe.create_customer(user.email, user.full_name, {"user_id": str(user.id)})
            user = await update_user_fields(user, {"stripe_customer_id": customer["id"]}, db)

        session = await stripe.create_checkout_session(
            user.stripe_customer_id,
            price_id,
            success_url=f"{settings.FRONTEND_URL}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.FRONTEND_URL}/subscription",
            metadata={"user_id": str(user.id)},
        )
    except StripeError as e:
        raise stripe_http_error(e)

    return CheckoutSessionResponse(session_id=session["id"], url=session["url"])


@router.post("/cancel", response_model=SubscriptionStatus)
async def cancel_subscription(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    stripe: StripeService = Depends(get_stripe_service),
):
    """Cancel at the end of the paid period; Pro stays active until then."""
    if not user.stripe_subscription_id:
        raise HTTPException(status_code=400, detail="No active subscription to cancel")
    try:
        subscription = await stripe.cancel_subscription_at_period_end(user.stripe_subscription_id)
    except StripeError as e:
        raise stripe_http_error(e)

    period_end = subscription_period_end(subscription)
    if period_end:
        user = await update_user_fields(user, {"subscription_end": period_end}, db)
    logger.info(f"Subscription for user {user.id} set to cancel at {period_end}")
    return subscription_status(user)


@router.get("/verify", response_model=VerifySessionResponse)
async def verify_checkout_session(
    session_id: str = Query(...),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    stripe: StripeService = Depends(get_stripe_service),
):
    try:
        session = await stripe.retrieve_checkout_session(session_id)
    except StripeError as e:
        raise stripe_http_error(e)

    if session.get("customer") != user.stripe_customer_id:
        raise HTTPException(status_code=403, detail="This checkout session belongs to another account")

    if session.get("status") != "complete" and session.get("payment_status") != "paid":
        return VerifySessionResponse(success=False, tier=user.subscription_tier, active=user.subscription_active)

    period_end = None
    subscription_id = session.get("subscription")
    if subscription_id:
        try:
            period_end = subscription_period_end(await stripe.retrieve_subscription(subscription_id))
        except StripeError as e:
            logger.warning(f"Could not load subscription {subscription_id}: {e}")

    was_pro = user.subscription_tier == "pro" and user.subscription_active
    user = await activate_pro(user, db, subscription_id, period_end)
    if not was_pro:
        await notify_subscription_change(db, user.id, "pro")
    return VerifySessionResponse(success=True, tier=user.subscription_tier, active=user.subscription_active)


async def _user_for_event(obj: Dict[str, Any], db: AsyncSession) -> Optional[User]:
    user_id = (obj.get("metadata") or {}).get("user_id")
    if user_id:
        try:
            user = await get_user_by_id(uuid.UUID(user_id), db)
        except ValueError:
            user = None
        if user:
            return user
    if obj.get("customer"):
        return await get_user_by_stripe_customer(obj["customer"], db)
    return None


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    stripe: StripeService = Depends(get_stripe_service),
):
    payload = await request.body()
    try:
        event = stripe.construct_event(payload, request.headers.get("Stripe-Signature"))
    except StripeNotConfiguredError:
        raise HTTPException(status_code=503, detail="Billing is not configured")
    except WebhookSignatureError as e:
        logger.warning(f"⚠️ Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid signature: {e}")

    event_type = event.get("type")
    obj = (event.get("data") or {}).get("object") or {}
    logger.info(f"Stripe webhook received: {event_type}")

    if event_type not in ("checkout.session.completed", "invoice.payment_succeeded", "customer.subscription.deleted"):
        return WebhookAck(event_type=event_type)

    user = await _user_for_event(obj, db)
    if user is None:
        logger.warning(f"No user found for Stripe event {event.get('id')} ({event_type})")
        return WebhookAck(event_type=event_type)

    if event_type == "checkout.session.completed":
        if obj.get("customer") and not user.stripe_customer_id:
            user = await update_user_fields(user, {"stripe_customer_id": obj["customer"]}, db)
        await activate_pro(user, db, obj.get("subscription"))
        await notify_subscription_change(db, user.id, "pro")
    elif event_type == "invoice.payment_succeeded":
        await activate_pro(user, db, obj.get("subscription"), invoice_period_end(obj))
    else:
        await downgrade_to_free(user, db)
        await notify_subscription_change(db, user.id, "free")

    return WebhookAck(event_type=event_type)
