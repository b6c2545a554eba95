async def test_goal_progress_and_completion(client):
    r = await client.post("/api/v1/goals/", json={"name": "New van", "target_amount": 500, "type": "savings"})
    assert r.status_code == 201
    goal = r.json()
    assert goal["current_amount"] == 0.0
    assert goal["is_completed"] is False

    r = await client.patch(f"/api/v1/goals/{goal['id']}/progress", json={"amount": 200})
    assert r.json()["current_amount"] == 200.0

    report = (await client.get(f"/api/v1/goals/{goal['id']}/progress")).json()
    assert report["progress_percentage"] == 40.0
    assert report["remaining_amount"] == 300.0
    assert report["days_left"] is None

    r = await client.patch(f"/api/v1/goals/{goal['id']}/progress", json={"amount": 300})
    assert r.json()["is_completed"] is True

    notifications = (await client.get("/api/v1/notifications/")).json()
    assert [n["type"] for n in notifications] == ["goal"]


async def test_withdrawal_never_goes_negative(client):
    goal = (await client.post("/api/v1/goals/", json={"name": "Tools", "target_amount": 300, "current_amount": 50})).json()
    r = await client.patch(f"/api/v1/goals/{goal['id']}/progress", json={"amount": -1000})
    assert r.json()["current_amount"] == 0.0


async def test_goals_by_type(client):
    await client.post("/api/v1/goals/", json={"name": "Pay off card", "target_amount": 900, "type": "debt"})
    await client.post("/api/v1/goals/", json={"name": "Rainy day", "target_amount": 1000})

    r = await client.get("/api/v1/goals/type/debt")
    assert [g["name"] for g in r.json()] == ["Pay off card"]
