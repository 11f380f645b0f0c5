import asyncio
import uuid
import pytest
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from hackcontrol.db import SessionLocal
from hackcontrol.errors import Locked
from hackcontrol.models.user import User
from hackcontrol.models.participation import Participation
from hackcontrol.schemas.participation import ParticipationCreate
from hackcontrol.services import submissions
from hackcontrol.services.hackathons import get_by_url


SUBMISSION = {
    "title": "Recycle Bot",
    "description": "Sorts trash",
    "project_url": "https://github.com/example/recycle-bot",
    "team_members": [{"name": "Ana", "github": "ana"}, {"name": "Ben", "email": "ben@example.com"}],
}


@pytest.mark.asyncio
async def test_submit_denormalizes_fields(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org, name="Green Hack")
    hdrs, username = await sign_in(name="Carla")

    r = await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)
    assert r.status_code == 201, r.text
    p = r.json()
    assert p["hackathon_name"] == "Green Hack"
    assert p["hackathon_url"] == h["url"]
    assert p["creator_name"] == "Carla"
    assert p["is_reviewed"] is False and p["is_winner"] is False
    assert [m["name"] for m in p["team_members"]] == ["Ana", "Ben"]


@pytest.mark.asyncio
async def test_second_submit_is_conflict(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()

    first = await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)
    second = await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json={"title": "Another"})
    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["kind"] == "Conflict"
    assert len((await client.get("/participations/mine", headers=hdrs)).json()) == 1


@pytest.mark.asyncio
async def test_store_enforces_one_submission_per_user(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()
    p = (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)).json()

    # Bypass the service pre-check, as a concurrent request would
    async with SessionLocal() as session:
        session.add(Participation(
            hackathon_id=uuid.UUID(p["hackathon_id"]),
            hackathon_name=p["hackathon_name"],
            hackathon_url=p["hackathon_url"],
            creator_id=uuid.UUID(p["creator_id"]),
            creator_name=p["creator_name"],
            title="Racing duplicate",
        ))
        with pytest.raises(IntegrityError):
            await session.commit()


@pytest.mark.asyncio
async def test_concurrent_submits_from_same_user(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()

    results = await asyncio.gather(*[
        client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json={"title": f"Entry {i}"})
        for i in range(2)
    ])
    assert sorted(r.status_code for r in results) == [201, 409]
    assert [r.json()["kind"] for r in results if r.status_code == 409] == ["Conflict"]
    assert len((await client.get("/participations/mine", headers=hdrs)).json()) == 1


@pytest.mark.asyncio
async def test_submit_rechecks_finish_inside_its_transaction(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    _, username = await sign_in()

    async with SessionLocal() as session:
        actor = await session.scalar(select(User).where(User.username == username))
        # This session has already seen the hackathon open when finish commits
        assert (await get_by_url(session, h["url"])).is_finished is False
        assert (await client.post(f"/hackathons/{h['url']}/finish", headers=org)).status_code == 200
        with pytest.raises(Locked):
            await submissions.submit(session, actor, h["url"], ParticipationCreate(title="Late"))

    async with SessionLocal() as session:
        assert await session.scalar(select(func.count()).select_from(Participation)) == 0


@pytest.mark.asyncio
async def test_same_user_can_enter_different_hackathons(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h1 = await make_hackathon(org, name="Hack One")
    h2 = await make_hackathon(org, name="Hack Two")
    hdrs, _ = await sign_in()
    assert (await client.post(f"/hackathons/{h1['url']}/participations", headers=hdrs, json=SUBMISSION)).status_code == 201
    assert (await client.post(f"/hackathons/{h2['url']}/participations", headers=hdrs, json=SUBMISSION)).status_code == 201


@pytest.mark.asyncio
async def test_submit_to_unknown_hackathon(client, sign_in):
    hdrs, _ = await sign_in()
    r = await client.post("/hackathons/ghost/participations", headers=hdrs, json=SUBMISSION)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_only_creator_updates(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()
    other, _ = await sign_in()
    p = (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)).json()

    r = await client.patch(f"/participations/{p['id']}", headers=other, json={"title": "Stolen"})
    assert r.status_code == 403
    assert r.json()["kind"] == "Forbidden"
    # the organizer does not edit submissions either
    assert (await client.patch(f"/participations/{p['id']}", headers=org, json={"title": "Edited"})).status_code == 403

    r = await client.patch(f"/participations/{p['id']}", headers=hdrs, json={"title": "Recycle Bot 2", "team_members": []})
    assert r.status_code == 200
    assert r.json()["title"] == "Recycle Bot 2"
    assert r.json()["team_members"] == []
    assert r.json()["description"] == SUBMISSION["description"]


@pytest.mark.asyncio
async def test_finished_hackathon_locks_submissions(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()
    late, _ = await sign_in()
    p = (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)).json()

    assert (await client.post(f"/hackathons/{h['url']}/finish", headers=org)).status_code == 200

    r = await client.post(f"/hackathons/{h['url']}/participations", headers=late, json=SUBMISSION)
    assert r.status_code == 423
    assert r.json()["kind"] == "Locked"
    r = await client.patch(f"/participations/{p['id']}", headers=hdrs, json={"title": "Too late"})
    assert r.status_code == 423
    r = await client.delete(f"/participations/{p['id']}", headers=hdrs)
    assert r.status_code == 423


@pytest.mark.asyncio
async def test_review_listing_is_restricted(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()
    judge, judge_name = await sign_in()
    p = (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)).json()

    # participants see their own submission but not the review list
    assert (await client.get(f"/hackathons/{h['url']}/participations", headers=hdrs)).status_code == 403
    own = await client.get(f"/participations/{p['id']}", headers=hdrs)
    assert own.status_code == 200
    assert own.json()["average_score"] is None

    await client.post(f"/hackathons/{h['url']}/judges", headers=org, json={"username": judge_name})
    for viewer in (org, judge):
        r = await client.get(f"/hackathons/{h['url']}/participations", headers=viewer)
        assert r.status_code == 200
        assert [x["id"] for x in r.json()] == [p["id"]]

    stranger, _ = await sign_in()
    assert (await client.get(f"/participations/{p['id']}", headers=stranger)).status_code == 403


@pytest.mark.asyncio
async def test_withdraw_submission(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()
    other, _ = await sign_in()
    p = (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)).json()

    assert (await client.delete(f"/participations/{p['id']}", headers=other)).status_code == 403
    assert (await client.delete(f"/participations/{p['id']}", headers=hdrs)).status_code == 204

    async with SessionLocal() as session:
        left = await session.scalar(select(func.count()).select_from(Participation))
    assert left == 0
    # withdrawing frees the slot
    assert (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)).status_code == 201


@pytest.mark.asyncio
async def test_update_rejects_null_title(client, sign_in, make_organizer, make_hackathon):
    org, _ = await make_organizer()
    h = await make_hackathon(org)
    hdrs, _ = await sign_in()
    p = (await client.post(f"/hackathons/{h['url']}/participations", headers=hdrs, json=SUBMISSION)).json()

    r = await client.patch(f"/participations/{p['id']}", headers=hdrs, json={"title": None})
    assert r.status_code == 422
    assert r.json()["kind"] == "ValidationFailed"
    assert (await client.get(f"/participations/{p['id']}", headers=hdrs)).json()["title"] == "Recycle Bot"
