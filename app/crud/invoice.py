# app/crud/invoice.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from app.models.invoice import Invoice
from app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from app.utils.invoices import compute_totals, generate_invoice_number
from typing import List, Optional, Dict, Any
from datetime import datetime
import uuid


async def get_invoices_for_user(user_id: uuid.UUID, db: AsyncSession, paid: Optional[bool] = None) -> List[Invoice]:
    query = select(Invoice).where(Invoice.user_id == user_id)
    if paid is not None:
        query = query.where(Invoice.paid == paid)
    result = await db.execute(query.order_by(Invoice.created_at.desc()))
    return result.scalars().all()


async def get_invoice_by_id(invoice_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Invoice]:
    result = await db.execute(
        select(Invoice).where(Invoice.id == invoice_id, Invoice.user_id == user_id)
    )
    return result.scalar_one_or_none()


def _apply_totals(invoice: Invoice) -> None:
    totals = compute_totals(invoice.line_items or [], invoice.tax_rate or 0.0)
    invoice.subtotal = totals["subtotal"]
    invoice.tax_amount = totals["tax_amount"]
    invoice.total = totals["total"]


async def create_invoice_for_user(user_id: uuid.UUID, invoice_in: InvoiceCreate, db: AsyncSession) -> Invoice:
    data = invoice_in.dict()
    data["invoice_number"] = data.get("invoice_number") or generate_invoice_number()
    invoice = Invoice(**data, user_id=user_id)
    _apply_totals(invoice)
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


async def update_invoice(invoice: Invoice, invoice_in: InvoiceUpdate, db: AsyncSession) -> Invoice:
    changes: Dict[str, Any] = invoice_in.dict(exclude_unset=True)
    for field, value in changes.items():
        if value is not None or field in ("client_email", "due_date", "notes", "payment_method"):
            setattr(invoice, field, value)
    _apply_totals(invoice)
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


async def mark_invoice_paid(invoice: Invoice, db: AsyncSession, payment_method: Optional[str] = None) -> Invoice:
    invoice.paid = True
    invoice.paid_at = datetime.utcnow()
    if payment_method:
        invoice.payment_method = payment_method
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


async def set_payment_intent(invoice: Invoice, payment_intent_id: str, db: AsyncSession) -> Invoice:
    invoice.stripe_payment_intent = payment_intent_id
    invoice.payment_method = invoice.payment_method or "card"
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


async def mark_invoice_sent(invoice: Invoice, db: AsyncSession) -> Invoice:
    invoice.sent_at = datetime.utcnow()
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


async def delete_invoice(invoice: Invoice, db: AsyncSession) -> None:
    await db.delete(invoice)
    await db.commit()
