"""Pytest configuration and fixtures.

Upstream GitHub traffic is always mocked with respx; endpoint tests talk to the
ASGI app directly. Every test gets a fresh in-memory cache.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio
import respx
from httpx import ASGITransport, AsyncClient, Response

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT, ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

os.environ.pop("ANALYTICS_CACHE_DATABASE_URL", None)
os.environ["ANALYTICS_CACHE_BACKEND"] = "memory"

from org_analytics.adapters.cache_store import InMemoryCacheStore  # noqa: E402
from org_analytics.main import app  # noqa: E402
from org_analytics.services.github_client import GitHubClient  # noqa: E402

from factories import API  # noqa: E402


@pytest.fixture(autouse=True)
def cache_store() -> InMemoryCacheStore:
    store = InMemoryCacheStore()
    app.state.cache_store = store
    app.state.github_client = GitHubClient(token="test-token", base_url=API)
    return store


@pytest.fixture
def github_client() -> GitHubClient:
    return GitHubClient(token="test-token", base_url=API)


@pytest_asyncio.fixture
async def client():
    """Client with raise_app_exceptions=False so 4xx/5xx return response body."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mock_org_repos() -> Callable[..., respx.Route]:
    """Register GET /orgs/{org}/repos serving `repos` in pages of `per_page`, then an empty page.

    Must be used inside an active respx mock.
    """

    def _register(org: str, repos: list[dict[str, Any]], per_page: int = 100, headers: dict | None = None) -> respx.Route:
        def _respond(request):
            page = int(request.url.params.get("page", "1"))
            chunk = repos[(page - 1) * per_page : page * per_page]
            return Response(200, json=chunk, headers=headers or {})

        return respx.get(f"{API}/orgs/{org}/repos").mock(side_effect=_respond)

    return _register
