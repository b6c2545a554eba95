# app/utils/invoices.py
import html
import random
import string
from datetime import datetime
from typing import Dict, Any, Iterable, List, Optional


def _cents(value: float) -> float:
    return round(value, 2)


def compute_totals(line_items: Iterable[Dict[str, Any]], tax_rate: float = 0.0) -> Dict[str, float]:
    """
    subtotal = sum(quantity * unit_price), tax = subtotal * tax_rate / 100,
    total = subtotal + tax. Every figure is rounded to cents.
    """
    subtotal = _cents(sum(float(item.get("quantity", 1)) * float(item.get("unit_price", 0)) for item in line_items))
    tax_amount = _cents(subtotal * (tax_rate or 0.0) / 100)
    return {
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total": _cents(subtotal + tax_amount),
    }


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """INV-YYYYMMDD-XXXX with a random upper-case alphanumeric suffix."""
    now = now or datetime.utcnow()
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"INV-{now:%Y%m%d}-{suffix}"


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


def summarize_by_payment_method(invoices: Iterable[Any]) -> Dict[str, Any]:
    groups: Dict[str, Dict[str, Any]] = {}
    for invoice in invoices:
        key = invoice.payment_method or "unspecified"
        group = groups.setdefault(key, {"payment_method": key, "count": 0, "collected": 0.0, "outstanding": 0.0})
        group["count"] += 1
        if invoice.paid:
            group["collected"] += invoice.total
        else:
            group["outstanding"] += invoice.total

    rows: List[Dict[str, Any]] = []
    for group in sorted(groups.values(), key=lambda g: g["payment_method"]):
        group["collected"] = _cents(group["collected"])
        group["outstanding"] = _cents(group["outstanding"])
        rows.append(group)

    return {
        "by_payment_method": rows,
        "total_collected": _cents(sum(r["collected"] for r in rows)),
        "total_outstanding": _cents(sum(r["outstanding"] for r in rows)),
    }


INVOICE_EMAIL_TEMPLATE = """
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Invoice {invoice_number}</title></head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
    <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; padding: 20px;">
        <h2 style="color: #16a34a;">Invoice {invoice_number}</h2>
        <p style="color: #666;">Hello {client_name},</p>
        <p style="color: #666;">{sender} has sent you an invoice.</p>
        <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
            <tr><th align="left">Item</th><th align="right">Qty</th><th align="right">Price</th><th align="right">Amount</th></tr>
            {rows}
        </table>
        <p style="text-align: right; color: #333;">Subtotal: ${subtotal:.2f}<br>Tax: ${tax_amount:.2f}<br><strong>Total: ${total:.2f}</strong></p>
        <p style="color: #666;">{due}</p>
        <p style="color: #999; font-size: 13px;">{notes}</p>
    </div>
</body>
</html>
"""


def render_invoice_email(invoice: Any, sender: str) -> str:
    """User-entered text is escaped before it goes into the HTML body."""
    rows = "".join(
        f"<tr><td>{html.escape(str(item['description']))}</td><td align=\"right\">{item.get('quantity', 1):g}</td>"
        f"<td align=\"right\">${float(item['unit_price']):.2f}</td>"
        f"<td align=\"right\">${float(item.get('quantity', 1)) * float(item['unit_price']):.2f}</td></tr>"
        for item in invoice.line_items or []
    )
    return INVOICE_EMAIL_TEMPLATE.format(
        invoice_number=html.escape(invoice.invoice_number),
        client_name=html.escape(invoice.client_name or ""),
        sender=html.escape(sender),
        rows=rows,
        subtotal=invoice.subtotal,
        tax_amount=invoice.tax_amount,
        total=invoice.total,
        due=f"Payment is due by {invoice.due_date:%B %d, %Y}." if invoice.due_date else "",
        notes=html.escape(invoice.notes or ""),
    )
