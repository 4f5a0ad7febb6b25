"""
Health Check API Tests
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.api


class TestHealthCheck:
    """Test health check endpoints."""

    @pytest.mark.asyncio
    async def test_liveness(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["service"] == "mailbox-migration"

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Health reports the mailbox system and session count."""
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["mailbox_system"]["mode"] == "fake"
        assert data["sessions"] == 0

    @pytest.mark.asyncio
    async def test_health_degraded_when_mover_raises(self, client: AsyncClient, mover, mocker):
        mocker.patch.object(mover, "test_connection", side_effect=RuntimeError("no route to host"))

        response = await client.get("/api/v1/health")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["mailbox_system"]["message"] == "no route to host"


class TestAPIInfo:
    """Test API info endpoints."""

    @pytest.mark.asyncio
    async def test_api_info(self, client: AsyncClient):
        response = await client.get("/api/v1")

        assert response.status_code == 200
        assert response.json()["endpoints"]["progress"] == "/api/v1/migration/progress"

    @pytest.mark.asyncio
    async def test_openapi_json(self, client: AsyncClient):
        """Test that OpenAPI JSON is accessible."""
        response = await client.get("/openapi.json")

        assert response.status_code == 200
        data = response.json()
        assert "openapi" in data
        assert "/api/v1/migration/start" in data["paths"]

    @pytest.mark.asyncio
    async def test_docs_endpoint(self, client: AsyncClient):
        """Test that docs endpoint is accessible."""
        response = await client.get("/docs")

        assert response.status_code == 200
