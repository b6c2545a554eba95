import re

INVOICE = {
    "client_name": "Jane Smith",
    "client_email": "jane@example.com",
    "line_items": [
        {"description": "Labour", "quantity": 3, "unit_price": 85},
        {"description": "Parts", "unit_price": 42.5},
    ],
    "tax_rate": 8.25,
    "payment_method": "card",
}


async def test_create_invoice_computes_totals(client):
    r = await client.post("/api/v1/invoices/", json=INVOICE)
    assert r.status_code == 201
    body = r.json()
    assert re.fullmatch(r"INV-\d{8}-[A-Z0-9]{4}", body["invoice_number"])
    assert body["subtotal"] == 297.5
    assert body["tax_amount"] == 24.54
    assert body["total"] == 322.04
    assert body["paid"] is False


async def test_invoice_needs_line_items(client):
    r = await client.post("/api/v1/invoices/", json={**INVOICE, "line_items": []})
    assert r.status_code == 422


async def test_paid_invoice_is_locked(client):
    invoice = (await client.post("/api/v1/invoices/", json=INVOICE)).json()

    r = await client.post(f"/api/v1/invoices/{invoice['id']}/mark-paid", json={"payment_method": "cash"})
    assert r.status_code == 200
    assert r.json()["paid"] is True
    assert r.json()["payment_method"] == "cash"

    r = await client.patch(f"/api/v1/invoices/{invoice['id']}", json={"tax_rate": 0})
    assert r.status_code == 400
    r = await client.post(f"/api/v1/invoices/{invoice['id']}/mark-paid", json={})
    assert r.status_code == 400

    paid = (await client.get("/api/v1/invoices/", params={"paid": True})).json()
    assert [i["id"] for i in paid] == [invoice["id"]]


async def test_update_recomputes_totals(client):
    invoice = (await client.post("/api/v1/invoices/", json=INVOICE)).json()
    r = await client.patch(f"/api/v1/invoices/{invoice['id']}", json={"tax_rate": 0})
    assert r.status_code == 200
    assert r.json()["total"] == 297.5


async def test_invoice_summary(client):
    first = (await client.post("/api/v1/invoices/", json=INVOICE)).json()
    await client.post("/api/v1/invoices/", json={**INVOICE, "tax_rate": 0})
    await client.post(f"/api/v1/invoices/{first['id']}/mark-paid", json={})

    summary = (await client.get("/api/v1/invoices/summary")).json()
    assert summary["total_collected"] == 322.04
    assert summary["total_outstanding"] == 297.5


async def test_card_payment_without_stripe(client):
    invoice = (await client.post("/api/v1/invoices/", json=INVOICE)).json()
    r = await client.post(f"/api/v1/invoices/{invoice['id']}/payment-intent")
    assert r.status_code == 503
