import json

import httpx
import pytest

from app.services.plaid_service import PlaidService, get_plaid_service

TRANSACTIONS = {
    "added": [
        {"transaction_id": "t1", "account_id": "acc-1", "amount": -250.0, "date": "2025-04-02",
         "name": "Deposit Smith repair", "pending": False},
        {"transaction_id": "t2", "account_id": "acc-1", "amount": 40.0, "date": "2025-04-03",
         "name": "Hardware store", "pending": False},
        {"transaction_id": "t3", "account_id": "acc-unknown", "amount": -10.0, "date": "2025-04-03",
         "name": "Other bank", "pending": False},
    ],
    "modified": [],
    "removed": [],
    "has_more": False,
    "next_cursor": "cursor-1",
}


class PlaidSandbox:
    """MockTransport handler. Sync pages are served in order; the last one repeats."""

    def __init__(self, *sync_pages):
        self.sync_pages = list(sync_pages)
        self.sync_cursors = []

    def __call__(self, request):
        body = json.loads(request.content)
        path = request.url.path
        if path == "/item/public_token/exchange":
            assert body["public_token"] == "public-sandbox-1"
            return httpx.Response(200, json={"access_token": "access-sandbox-1", "item_id": "item-1"})
        if path == "/accounts/get":
            return httpx.Response(200, json={"accounts": [{
                "account_id": "acc-1", "name": "Business Checking", "type": "depository", "subtype": "checking",
                "mask": "4321", "balances": {"available": 1200.0, "current": 1250.0},
            }]})
        if path == "/transactions/sync":
            self.sync_cursors.append(body.get("cursor"))
            page = self.sync_pages.pop(0) if len(self.sync_pages) > 1 else self.sync_pages[0]
            return httpx.Response(200, json=page)
        if path == "/item/remove":
            return httpx.Response(200, json={})
        return httpx.Response(404, json={"error_code": "NOT_FOUND", "error_message": path})


def use_plaid(app, sandbox):
    service = PlaidService("client-id", "secret", "https://sandbox.plaid.com",
                           transport=httpx.MockTransport(sandbox))
    app.dependency_overrides[get_plaid_service] = lambda: service
    return service


@pytest.fixture()
def plaid(app):
    return use_plaid(app, PlaidSandbox(TRANSACTIONS))


async def _link(client):
    r = await client.post("/api/v1/plaid/exchange-token", json={
        "public_token": "public-sandbox-1",
        "institution": {"institution_id": "ins_1", "name": "First Platypus Bank"},
    })
    assert r.status_code == 201
    return r.json()


async def test_link_sync_and_import(client, pro_user, plaid):
    connection = await _link(client)
    assert connection["institution_name"] == "First Platypus Bank"
    assert [a["mask"] for a in connection["accounts"]] == ["4321"]

    r = await client.post(f"/api/v1/bank-connections/{connection['id']}/sync")
    assert r.status_code == 200
    assert r.json()["added"] == 2

    # Already stored transactions are not added twice
    r = await client.post(f"/api/v1/bank-connections/{connection['id']}/sync")
    assert r.json()["added"] == 0

    account_id = connection["accounts"][0]["id"]
    transactions = (await client.get(f"/api/v1/bank-accounts/{account_id}/transactions")).json()
    assert {t["plaid_transaction_id"] for t in transactions} == {"t1", "t2"}

    r = await client.post(f"/api/v1/bank-connections/{connection['id']}/import-income")
    assert r.json() == {"imported": 1, "total_amount": 250.0}
    r = await client.post(f"/api/v1/bank-connections/{connection['id']}/import-income")
    assert r.json() == {"imported": 0, "total_amount": 0.0}

    incomes = (await client.get("/api/v1/incomes/")).json()
    assert len(incomes) == 1
    assert incomes[0]["amount"] == 250.0
    assert incomes[0]["source"] == "First Platypus Bank"
    assert incomes[0]["bank_transaction_id"] is not None


async def test_sync_requires_pro(client, plaid):
    connection = await _link(client)
    r = await client.post(f"/api/v1/bank-connections/{connection['id']}/sync")
    assert r.status_code == 403


async def test_delete_connection(client, plaid):
    connection = await _link(client)
    r = await client.delete(f"/api/v1/bank-connections/{connection['id']}")
    assert r.status_code == 204
    assert (await client.get("/api/v1/bank-connections")).json() == []


async def test_link_token_without_plaid(client):
    r = await client.post("/api/v1/plaid/create-link-token")
    assert r.status_code == 503


async def test_sync_applies_modified_and_removed(app, client, pro_user):
    sandbox = PlaidSandbox(TRANSACTIONS, {
        "added": [],
        "modified": [{"transaction_id": "t2", "account_id": "acc-1", "amount": 45.5, "date": "2025-04-03",
                      "name": "Hardware store", "merchant_name": "Ace Hardware", "pending": False}],
        "removed": [{"transaction_id": "t1", "account_id": "acc-1"}],
        "has_more": False,
        "next_cursor": "cursor-2",
    })
    use_plaid(app, sandbox)
    connection = await _link(client)

    await client.post(f"/api/v1/bank-connections/{connection['id']}/sync")
    r = await client.post(f"/api/v1/bank-connections/{connection['id']}/sync")
    assert r.status_code == 200
    assert r.json()["added"] == 0
    assert r.json()["modified"] == 1
    assert r.json()["removed"] == 1
    assert sandbox.sync_cursors == [None, "cursor-1"]

    account_id = connection["accounts"][0]["id"]
    transactions = (await client.get(f"/api/v1/bank-accounts/{account_id}/transactions")).json()
    assert [(t["plaid_transaction_id"], t["amount"]) for t in transactions] == [("t2", 45.5)]


async def test_pending_transaction_posted_within_one_sync(app, client, pro_user):
    pending = {"transaction_id": "p1", "account_id": "acc-1", "amount": 18.0, "date": "2025-04-05",
               "name": "Gas station", "pending": True}
    posted = {**pending, "transaction_id": "p1-posted", "pending": False}
    sandbox = PlaidSandbox(
        {"added": [pending], "modified": [], "removed": [], "has_more": True, "next_cursor": "page-2"},
        {"added": [posted], "modified": [], "removed": [{"transaction_id": "p1"}],
         "has_more": False, "next_cursor": "cursor-final"},
        {"added": [], "modified": [], "removed": [], "has_more": False, "next_cursor": "cursor-final"},
    )
    use_plaid(app, sandbox)
    connection = await _link(client)

    r = await client.post(f"/api/v1/bank-connections/{connection['id']}/sync")
    assert r.status_code == 200
    assert r.json()["added"] == 1
    assert r.json()["removed"] == 0

    account_id = connection["accounts"][0]["id"]
    transactions = (await client.get(f"/api/v1/bank-accounts/{account_id}/transactions")).json()
    assert [t["plaid_transaction_id"] for t in transactions] == ["p1-posted"]

    # The final cursor was stored
    await client.post(f"/api/v1/bank-connections/{connection['id']}/sync")
    assert sandbox.sync_cursors == [None, "page-2", "cursor-final"]
