import re
from datetime import datetime
from types import SimpleNamespace

from app.utils.invoices import (
    compute_totals,
    generate_invoice_number,
    render_invoice_email,
    summarize_by_payment_method,
    to_cents,
)


def test_compute_totals_with_tax():
    items = [
        {"description": "Labour", "quantity": 3, "unit_price": 85.0},
        {"description": "Parts", "quantity": 1, "unit_price": 42.5},
    ]
    assert compute_totals(items, 8.25) == {"subtotal": 297.5, "tax_amount": 24.54, "total": 322.04}


def test_compute_totals_without_tax():
    assert compute_totals([{"description": "Call-out", "unit_price": 60}]) == {
        "subtotal": 60.0, "tax_amount": 0.0, "total": 60.0,
    }


def test_invoice_number_format():
    number = generate_invoice_number(datetime(2025, 6, 3))
    assert re.fullmatch(r"INV-20250603-[A-Z0-9]{4}", number)


def test_to_cents():
    assert to_cents(322.04) == 32204
    assert to_cents(0.1 + 0.2) == 30


def test_summarize_by_payment_method():
    invoices = [
        SimpleNamespace(payment_method="cash", paid=True, total=100.0),
        SimpleNamespace(payment_method="cash", paid=False, total=50.0),
        SimpleNamespace(payment_method=None, paid=False, total=25.5),
    ]
    summary = summarize_by_payment_method(invoices)
    assert summary["total_collected"] == 100.0
    assert summary["total_outstanding"] == 75.5
    assert summary["by_payment_method"] == [
        {"payment_method": "cash", "count": 2, "collected": 100.0, "outstanding": 50.0},
        {"payment_method": "unspecified", "count": 1, "collected": 0.0, "outstanding": 25.5},
    ]


def test_render_invoice_email():
    invoice = SimpleNamespace(
        invoice_number="INV-20250603-AB12",
        client_name="Jane Smith",
        line_items=[{"description": "Boiler service", "quantity": 2, "unit_price": 75}],
        subtotal=150.0,
        tax_amount=0.0,
        total=150.0,
        due_date=datetime(2025, 7, 1),
        notes=None,
    )
    html = render_invoice_email(invoice, "Ace Plumbing")
    assert "INV-20250603-AB12" in html
    assert "Ace Plumbing" in html
    assert "Boiler service" in html
    assert "$150.00" in html
    assert "July 01, 2025" in html


def test_render_invoice_email_escapes_user_text():
    invoice = SimpleNamespace(
        invoice_number="INV-20250603-CD34",
        client_name="<script>alert(1)</script>",
        line_items=[{"description": "<b>Pipe</b> & fittings", "quantity": 1, "unit_price": 10}],
        subtotal=10.0,
        tax_amount=0.0,
        total=10.0,
        due_date=None,
        notes="<img src=x onerror=alert(2)>",
    )
    html = render_invoice_email(invoice, "Bob's <Repairs>")
    assert "<script>" not in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert "&lt;b&gt;Pipe&lt;/b&gt; &amp; fittings" in html
    assert "<img" not in html
    assert "Bob&#x27;s &lt;Repairs&gt;" in html
