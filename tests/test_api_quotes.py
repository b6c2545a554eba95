import uuid
from datetime import datetime, timedelta

from app.models.quote import Quote


QUOTE = {
    "client_name": "Dana Ortiz",
    "client_email": "dana@example.com",
    "industry": "HVAC",
    "service_type": "Furnace tune-up",
    "experience_years": 4,
    "line_items": [
        {"description": "Labour", "quantity": 2, "unit_price": 85, "category": "labor"},
        {"description": "Filter", "quantity": 1, "unit_price": 40.25, "category": "materials"},
    ],
}


async def test_create_quote_prices_it(client):
    r = await client.post("/api/v1/quotes/", json=QUOTE)
    assert r.status_code == 201
    quote = r.json()
    assert quote["industry"] == "hvac"
    assert quote["profit_margin"] == 0.29
    assert quote["subtotal"] == 210.25
    assert quote["tax"] == 14.72
    assert quote["total"] == 224.97
    assert quote["tiered_pricing"] == {"basic": 191.22, "standard": 224.97, "premium": 281.21}
    assert [i["total"] for i in quote["line_items"]] == [170.0, 40.25]
    assert quote["status"] == "draft"
    assert quote["is_expired"] is False

    created = datetime.fromisoformat(quote["created_at"])
    expires = datetime.fromisoformat(quote["expires_at"])
    assert timedelta(days=29) < expires - created <= timedelta(days=30)


async def test_quote_needs_line_items(client):
    r = await client.post("/api/v1/quotes/", json={**QUOTE, "line_items": []})
    assert r.status_code == 422


async def test_estimate_price(client):
    r = await client.post("/api/v1/quotes/estimate",
                          json={"industry": "locksmith", "base_price": 100, "experience_years": 5})
    assert r.status_code == 200
    estimate = r.json()
    # Locksmith work is not seasonal
    assert estimate["seasonal_factor"] == 1.0
    assert estimate["profit_margin"] == 0.425
    assert estimate["price"] == 142.5
    assert estimate["tiered_pricing"]["standard"] == 142.5


async def test_status_moves_forward_only(client):
    quote = (await client.post("/api/v1/quotes/", json=QUOTE)).json()
    url = f"/api/v1/quotes/{quote['id']}/status"

    assert (await client.patch(url, json={"status": "sent"})).json()["status"] == "sent"
    r = await client.patch(url, json={"status": "draft"})
    assert r.status_code == 400
    assert (await client.patch(url, json={"status": "accepted"})).json()["status"] == "accepted"
    r = await client.patch(url, json={"status": "declined"})
    assert r.status_code == 400

    r = await client.get("/api/v1/quotes/", params={"status": "accepted"})
    assert [q["id"] for q in r.json()] == [quote["id"]]
    assert (await client.get("/api/v1/quotes/", params={"status": "draft"})).json() == []


async def test_expired_quote_cannot_be_accepted(client, db):
    quote = (await client.post("/api/v1/quotes/", json=QUOTE)).json()
    stored = await db.get(Quote, uuid.UUID(quote["id"]))
    stored.expires_at = datetime.utcnow() - timedelta(days=1)
    await db.commit()

    assert (await client.get(f"/api/v1/quotes/{quote['id']}")).json()["is_expired"] is True
    r = await client.patch(f"/api/v1/quotes/{quote['id']}/status", json={"status": "accepted"})
    assert r.status_code == 400


async def test_quote_history(client):
    first = (await client.post("/api/v1/quotes/", json=QUOTE)).json()
    await client.post("/api/v1/quotes/", json={**QUOTE, "industry": "plumbing", "experience_years": 12})
    await client.patch(f"/api/v1/quotes/{first['id']}/status", json={"status": "accepted"})

    history = (await client.get("/api/v1/quotes/history")).json()
    stats = history["stats"]
    assert len(history["quotes"]) == 2
    assert stats["total_quotes"] == 2
    assert stats["average_margin"] == 0.345
    assert stats["accepted_quotes"] == 1
    assert stats["acceptance_rate"] == 100.0
    assert stats["total_accepted"] == 224.97
    assert set(stats["preferred_industries"]) == {"hvac", "plumbing"}


async def test_quotes_are_private(client, other_user, login_as):
    quote = (await client.post("/api/v1/quotes/", json=QUOTE)).json()

    login_as(other_user)
    assert (await client.get(f"/api/v1/quotes/{quote['id']}")).status_code == 404
    assert (await client.delete(f"/api/v1/quotes/{quote['id']}")).status_code == 404
    assert (await client.get("/api/v1/quotes/")).json() == []


async def test_delete_quote(client):
    quote = (await client.post("/api/v1/quotes/", json=QUOTE)).json()
    assert (await client.delete(f"/api/v1/quotes/{quote['id']}")).status_code == 204
    assert (await client.get(f"/api/v1/quotes/{quote['id']}")).status_code == 404
