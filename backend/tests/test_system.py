import pytest


@pytest.mark.asyncio
async def test_health_ok(client):
    r = await client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert "request_id" in data
    assert r.headers["X-Request-ID"] == data["request_id"]


@pytest.mark.asyncio
async def test_health_echoes_request_id(client):
    r = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.json()["request_id"] == "req-123"
    assert r.headers["X-Request-ID"] == "req-123"


@pytest.mark.asyncio
async def test_version_ok(client):
    r = await client.get("/version")
    assert r.status_code == 200
    data = r.json()
    assert "version" in data and "git_sha" in data
