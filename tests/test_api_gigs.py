async def _create_gig(client):
    r = await client.post("/api/v1/gigs/", json={
        "title": "Fix leaking tap",
        "description": "Kitchen tap drips constantly",
        "pay_amount": 80,
        "location": "Springfield",
    })
    assert r.status_code == 201
    return r.json()


async def test_only_creator_can_edit(client, other_user, login_as):
    gig = await _create_gig(client)

    login_as(other_user)
    r = await client.patch(f"/api/v1/gigs/{gig['id']}", json={"pay_amount": 10})
    assert r.status_code == 403
    r = await client.delete(f"/api/v1/gigs/{gig['id']}")
    assert r.status_code == 403


async def test_apply_and_assign(client, user, other_user, login_as):
    gig = await _create_gig(client)

    r = await client.post(f"/api/v1/gigs/{gig['id']}/apply", json={"message": "mine"})
    assert r.status_code == 400

    login_as(other_user)
    r = await client.post(f"/api/v1/gigs/{gig['id']}/apply", json={"message": "I can do it today"})
    assert r.status_code == 201
    application = r.json()
    assert application["status"] == "pending"

    r = await client.post(f"/api/v1/gigs/{gig['id']}/apply", json={})
    assert r.status_code == 400
    r = await client.get(f"/api/v1/gigs/{gig['id']}/applications")
    assert r.status_code == 403

    login_as(user)
    applications = (await client.get(f"/api/v1/gigs/{gig['id']}/applications")).json()
    assert [a["id"] for a in applications] == [application["id"]]

    r = await client.post(f"/api/v1/gigs/{gig['id']}/assign/{application['id']}")
    assert r.status_code == 200
    assert r.json()["status"] == "assigned"
    assert r.json()["assigned_to"] == str(other_user.id)

    open_gigs = (await client.get("/api/v1/gigs/", params={"status": "open"})).json()
    assert open_gigs == []

    login_as(other_user)
    notifications = (await client.get("/api/v1/notifications/")).json()
    assert notifications[0]["title"] == "You got the gig!"
