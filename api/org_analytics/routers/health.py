"""Liveness and readiness checks for the analytics API."""

import time
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict

from org_analytics import config
from org_analytics.adapters.cache_store import NullCacheStore

router = APIRouter()

HEALTH_VERSION = "1.0.0"
_STARTED_MONOTONIC = time.monotonic()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


class HealthResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: str
    version: str
    timestamp: str
    uptime_seconds: int
    default_org: str


class ReadyResponse(BaseModel):
    """Which cache backend and credential the pipeline is running with."""

    model_config = ConfigDict(extra="forbid")

    status: str
    cache_backend: str
    caching_enabled: bool  # False when running fail-open
    github_authenticated: bool
    github_api: str


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="ok",
        version=HEALTH_VERSION,
        timestamp=_now_iso(),
        uptime_seconds=int(time.monotonic() - _STARTED_MONOTONIC),
        default_org=config.DEFAULT_ORG,
    )


@router.get("/ready", response_model=ReadyResponse)
async def ready(request: Request):
    """200 once the cache store and GitHub client are attached to the app, 503 before."""
    store = getattr(request.app.state, "cache_store", None)
    client = getattr(request.app.state, "github_client", None)
    if store is None or client is None:
        raise HTTPException(status_code=503, detail="not ready")
    return ReadyResponse(
        status="ready",
        cache_backend=type(store).__name__,
        caching_enabled=not isinstance(store, NullCacheStore),
        github_authenticated=client.authenticated,
        github_api=config.GITHUB_API_BASE_URL,
    )
