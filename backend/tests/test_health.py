import pytest


@pytest.mark.asyncio
async def test_health_endpoint_returns_ok(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_health_needs_no_caller_identity(client):
    del client.headers["X-User-Id"]
    response = await client.get("/api/health")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_cors_preflight_allows_frontend_deletes(client):
    response = await client.options(
        "/api/synoptics/sites/some-site",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "DELETE",
        },
    )
    assert response.status_code == 200
    assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"
    assert "DELETE" in response.headers.get("access-control-allow-methods", "")


@pytest.mark.asyncio
async def test_unknown_origin_gets_no_cors_header(client):
    response = await client.get("/api/health", headers={"Origin": "http://evil.test"})
    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers
