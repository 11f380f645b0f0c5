from __future__ import annotations
import os
import uuid

# Must be set before hackcontrol.config is imported
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///./hackcontrol_test.db")
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["AUTH_PROVIDER_SECRET"] = "test-provider-secret"

import httpx
import pytest_asyncio
from httpx import AsyncClient

from hackcontrol.db import Base, engine
import hackcontrol.models.user  # noqa: F401  register tables
import hackcontrol.models.hackathon  # noqa: F401
import hackcontrol.models.participation  # noqa: F401
from hackcontrol.main import app

PROVIDER_HEADERS = {"X-Auth-Secret": "test-provider-secret"}


@pytest_asyncio.fixture
async def client():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def sign_in(client):
    """Returns an async helper: sign_in(login=None, email=None, name=None) -> (headers, username)."""
    async def _sign_in(login: str | None = None, email: str | None = None, name: str | None = None):
        login = login or f"user_{uuid.uuid4().hex[:8]}"
        email = email or f"{login}@example.com"
        r = await client.post("/auth/session", headers=PROVIDER_HEADERS, json={
            "provider": "github", "login": login, "email": email, "name": name,
        })
        assert r.status_code == 200, r.text
        hdrs = {"Authorization": f"Bearer {r.json()['access']}"}
        me = await client.get("/auth/me", headers=hdrs)
        assert me.status_code == 200, me.text
        return hdrs, me.json()["username"]
    return _sign_in


@pytest_asyncio.fixture
async def admin(sign_in):
    hdrs, _ = await sign_in(login="admin", email="admin@example.com")
    return hdrs


@pytest_asyncio.fixture
async def make_organizer(client, sign_in, admin):
    async def _make(login: str | None = None, name: str | None = None):
        hdrs, username = await sign_in(login=login, name=name)
        r = await client.patch(f"/users/{username}/role", headers=admin, json={"role": "ORGANIZER"})
        assert r.status_code == 200, r.text
        return hdrs, username
    return _make


@pytest_asyncio.fixture
async def make_hackathon(client):
    async def _make(hdrs: dict, name: str = "Spring Hack", **extra):
        r = await client.post("/hackathons", headers=hdrs, json={"name": name, **extra})
        assert r.status_code == 201, r.text
        return r.json()
    return _make
