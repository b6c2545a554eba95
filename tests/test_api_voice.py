async def test_voice_expense_created(client):
    r = await client.post("/api/v1/voice/expense", json={
        "transcript": "spent 45 dollars on groceries at walmart with my debit card",
    })
    assert r.status_code == 201
    body = r.json()
    assert body["amount"] == 45.0
    assert body["description"] == "Groceries"
    assert body["category"] == "food"
    assert body["payment_method"] == "debit"
    assert body["notes"].startswith("Voice entry:")


async def test_voice_expense_with_missing_fields(client):
    r = await client.post("/api/v1/voice/expense", json={"transcript": "spent 45 dollars"})
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert detail["missing_fields"] == ["description"]
    assert detail["draft"]["amount"] == 45.0

    assert (await client.get("/api/v1/expenses/")).json() == []


async def test_parse_income(client):
    r = await client.post("/api/v1/voice/parse-income", json={"transcript": "earned 250 from installation at the smith house"})
    assert r.status_code == 200
    assert r.json()["category"] == "installation"
    assert r.json()["amount"] == 250.0


async def test_voice_commands(client):
    r = await client.post("/api/v1/voice/command", json={"transcript": "show goals"})
    assert r.json()["route"] == "/goals"

    commands = (await client.get("/api/v1/voice/commands")).json()
    assert {"phrase": "help", "action": "show_help", "route": None, "description": "Show available commands"} in commands
