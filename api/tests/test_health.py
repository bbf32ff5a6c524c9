"""Tests for GET /api/health, GET /api/ready and the root redirect."""

import re
from datetime import datetime

import pytest
from httpx import AsyncClient

from org_analytics.adapters.cache_store import NullCacheStore
from org_analytics.main import app


@pytest.mark.asyncio
async def test_root_redirects_to_docs(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code in (302, 307)
    assert response.headers["location"] == "/docs"


@pytest.mark.asyncio
async def test_docs_returns_200(client: AsyncClient):
    response = await client.get("/docs")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_health_api_contract(client: AsyncClient):
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"status", "version", "timestamp", "uptime_seconds", "default_org"}
    assert data["status"] == "ok"
    assert re.match(r"^\d+\.\d+\.\d+$", data["version"])
    assert datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00")).utcoffset().total_seconds() == 0
    assert data["uptime_seconds"] >= 0
    assert data["default_org"] == "datasets"


@pytest.mark.asyncio
async def test_ready_reports_cache_and_auth(client: AsyncClient):
    response = await client.get("/api/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["cache_backend"] == "InMemoryCacheStore"
    assert data["caching_enabled"] is True
    assert data["github_authenticated"] is True
    assert data["github_api"] == "https://api.github.com"


@pytest.mark.asyncio
async def test_ready_without_cache_reports_fail_open(client: AsyncClient):
    app.state.cache_store = NullCacheStore()
    response = await client.get("/api/ready")
    assert response.status_code == 200
    assert response.json()["caching_enabled"] is False


@pytest.mark.asyncio
async def test_ready_returns_503_before_wiring(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(app.state, "github_client", None)
    response = await client.get("/api/ready")
    assert response.status_code == 503
