"""
API tests for health probes and metrics.
"""

from unittest.mock import AsyncMock, patch

import pytest

pytestmark = [pytest.mark.api, pytest.mark.asyncio]


async def test_health(async_client):
    response = await async_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["timestamp"].endswith("Z")


async def test_live(async_client):
    response = await async_client.get("/live")

    assert response.json() == {"status": "alive"}


async def test_ready_when_database_answers(async_client):
    with patch("reconciliation.api.routes.health.ping", new=AsyncMock()):
        response = await async_client.get("/ready")

    assert response.status_code == 200
    assert response.json()["checks"] == {"postgres": True}


async def test_ready_degraded_without_database(async_client):
    with patch(
        "reconciliation.api.routes.health.ping",
        new=AsyncMock(side_effect=RuntimeError("Database not initialized")),
    ):
        response = await async_client.get("/ready")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


async def test_metrics_exposes_identify_counter(async_client):
    await async_client.post("/identify", json={"email": "a@x.com"})

    response = await async_client.get("/metrics/")

    assert response.status_code == 200
    assert "reconciliation_identify_total" in response.text
