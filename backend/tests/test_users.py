import pytest


@pytest.mark.asyncio
async def test_admin_bootstrap_and_role_changes(client, sign_in, admin):
    me = (await client.get("/users/me", headers=admin)).json()
    assert me["role"] == "ADMIN"

    hdrs, username = await sign_in()
    r = await client.patch(f"/users/{username}/role", headers=admin, json={"role": "ORGANIZER"})
    assert r.status_code == 200
    assert r.json()["role"] == "ORGANIZER"

    r = await client.patch(f"/users/{username}/role", headers=admin, json={"role": "SUPERUSER"})
    assert r.status_code == 422
    assert r.json()["kind"] == "ValidationFailed"


@pytest.mark.asyncio
async def test_only_admin_manages_users(client, sign_in, admin):
    hdrs, username = await sign_in()
    r = await client.patch(f"/users/{username}/role", headers=hdrs, json={"role": "ADMIN"})
    assert r.status_code == 403
    assert r.json()["kind"] == "Forbidden"
    assert (await client.get("/users", headers=hdrs)).status_code == 403

    listing = await client.get("/users", headers=admin)
    assert listing.status_code == 200
    assert {u["username"] for u in listing.json()} >= {"admin", username}


@pytest.mark.asyncio
async def test_admin_cannot_revoke_self(client, admin):
    r = await client.patch("/users/admin/access", headers=admin, json={"has_access": False})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_public_profile_and_unknown_user(client, sign_in):
    _, username = await sign_in(name="Ada")
    r = await client.get(f"/users/{username}")
    assert r.status_code == 200
    assert r.json()["name"] == "Ada"
    assert "email" not in r.json()

    r = await client.get("/users/nobody-here")
    assert r.status_code == 404
    assert r.json()["kind"] == "NotFound"


@pytest.mark.asyncio
async def test_profile_rename_updates_creator_name(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in(name="Old Name")
    p = (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json={"title": "Bot"})).json()
    assert p["creator_name"] == "Old Name"

    r = await client.patch("/users/me", headers=hdrs, json={"name": "New Name"})
    assert r.status_code == 200
    mine = (await client.get("/participations/mine", headers=hdrs)).json()
    assert mine[0]["creator_name"] == "New Name"
