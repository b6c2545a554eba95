# app/api/v1/routes/invoices.py
import uuid
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.auth import User, send_email_via_sendgrid
from app.core.database import get_async_session
from app.crud import invoice as crud_invoice
from app.models.invoice import Invoice
from app.schemas.invoice import (
    InvoiceCreate, InvoiceUpdate, InvoiceRead, MarkPaidRequest, PaymentIntentResponse, InvoiceSummary,
)
from app.services.stripe_service import StripeService, StripeError, StripeNotConfiguredError, get_stripe_service
from app.utils.invoices import render_invoice_email, summarize_by_payment_method, to_cents
from app.utils.notifications import notify_invoice_paid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])


async def _get_owned_invoice(invoice_id: uuid.UUID, user: User, db: AsyncSession) -> Invoice:
    invoice = await crud_invoice.get_invoice_by_id(invoice_id, user.id, db)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    paid: Optional[bool] = None,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_invoice.get_invoices_for_user(user.id, db, paid=paid)


@router.get("/summary", response_model=InvoiceSummary)
async def invoice_summary(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Invoice counts with collected and outstanding totals per payment method."""
    return summarize_by_payment_method(await crud_invoice.get_invoices_for_user(user.id, db))


@router.post("/", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_in: InvoiceCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await crud_invoice.create_invoice_for_user(user.id, invoice_in, db)


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await _get_owned_invoice(invoice_id, user, db)


@router.patch("/{invoice_id}", response_model=InvoiceRead)
async def update_invoice(
    invoice_id: uuid.UUID,
    invoice_in: InvoiceUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    invoice = await _get_owned_invoice(invoice_id, user, db)
    if invoice.paid:
        raise HTTPException(status_code=400, detail="Paid invoices cannot be edited")
    return await crud_invoice.update_invoice(invoice, invoice_in, db)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    invoice = await _get_owned_invoice(invoice_id, user, db)
    await crud_invoice.delete_invoice(invoice, db)


@router.post("/{invoice_id}/payment-intent", response_model=PaymentIntentResponse)
async def create_invoice_payment_intent(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
    stripe: StripeService = Depends(get_stripe_service),
):
    invoice = await _get_owned_invoice(invoice_id, user, db)
    if invoice.paid:
        raise HTTPException(status_code=400, detail="Invoice is already paid")

    amount = to_cents(invoice.total)
    try:
        intent = await stripe.create_payment_intent(
            amount,
            metadata={"invoice_id": str(invoice.id), "invoice_number": invoice.invoice_number},
            receipt_email=invoice.client_email,
        )
    except StripeNotConfiguredError:
        raise HTTPException(status_code=503, detail="Card payments are not configured")
    except StripeError as e:
        raise HTTPException(status_code=502, detail=f"Stripe error: {e}")

    await crud_invoice.set_payment_intent(invoice, intent["id"], db)
    return PaymentIntentResponse(client_secret=intent["client_secret"], payment_intent_id=intent["id"], amount=amount)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceRead)
async def mark_invoice_paid(
    invoice_id: uuid.UUID,
    body: MarkPaidRequest,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    invoice = await _get_owned_invoice(invoice_id, user, db)
    if invoice.paid:
        raise HTTPException(status_code=400, detail="Invoice is already paid")
    invoice = await crud_invoice.mark_invoice_paid(invoice, db, body.payment_method)
    await notify_invoice_paid(db, user.id, invoice.invoice_number, invoice.total)
    return invoice


@router.post("/{invoice_id}/send", response_model=InvoiceRead)
async def send_invoice(
    invoice_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    invoice = await _get_owned_invoice(invoice_id, user, db)
    if not invoice.client_email:
        raise HTTPException(status_code=400, detail="Invoice has no client email")

    sender = user.business_name or user.full_name or user.email
    sent = await send_email_via_sendgrid(
        invoice.client_email,
        f"Invoice {invoice.invoice_number} from {sender}",
        render_invoice_email(invoice, sender),
    )
    if not sent:
        raise HTTPException(status_code=502, detail="Failed to send invoice email")

    logger.info(f"📧 Invoice {invoice.invoice_number} sent to {invoice.client_email}")
    return await crud_invoice.mark_invoice_sent(invoice, db)
