"""
Tests for the HTTP surface.
"""

import httpx
import pytest

from apphost import __version__
from apphost.app.main import create_app
from apphost.redis import add_redis_v8


@pytest.fixture
def application(builder, password, fake_redis, monkeypatch):
    monkeypatch.setattr("apphost.redis.health._default_client_factory", lambda options: fake_redis)
    add_redis_v8(builder, "db", port=6379, password=builder.add_resource(password))
    return builder.build()


def _client(application):
    transport = httpx.ASGITransport(app=create_app(application))
    return httpx.AsyncClient(transport=transport, base_url="http://apphost")


class TestEndpoints:
    """Tests for the FastAPI routes."""

    @pytest.mark.asyncio
    async def test_root(self, application):
        async with _client(application) as client:
            response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == __version__
        assert data["status"] == "running"

    @pytest.mark.asyncio
    async def test_health_is_503_before_ready(self, application):
        async with _client(application) as client:
            response = await client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["checks"][0]["name"] == "db_check"
        assert "Connection string is unavailable" in data["checks"][0]["error"]

    @pytest.mark.asyncio
    async def test_health_is_200_after_ready(self, application, fake_redis):
        await application.notify_resource_ready("db")

        async with _client(application) as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert fake_redis.pings == 1

    @pytest.mark.asyncio
    async def test_resources(self, application):
        async with _client(application) as client:
            before = (await client.get("/resources")).json()
            await application.notify_resource_ready("db")
            after = (await client.get("/resources")).json()

        assert set(before["resources"]) == {"db", "db-password"}
        assert before["resources"]["db"]["env"]["REDIS_PASSWORD"] == "{db-password.value}"
        assert "s3cret-Value" not in str(after)
        assert before["readiness"] == {"db": "subscribed"}
        assert after["readiness"] == {"db": "resolved"}
