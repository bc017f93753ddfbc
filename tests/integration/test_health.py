import pytest
from services.distribution_service.app import main as main_module


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health_echoes_request_id(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "service": "distribution",
        "redis": "unavailable",
    }
    assert response.headers["X-Request-ID"] == "abc123"
    assert float(response.headers["X-Process-Time-Ms"]) >= 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health_reports_redis(client, monkeypatch):
    async def _ping():
        return True

    monkeypatch.setattr(main_module, "ping_redis", _ping)
    response = await client.get("/health")

    assert response.json()["redis"] == "ok"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unknown_route_uses_error_body(client):
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
    assert "X-Request-ID" in response.headers
