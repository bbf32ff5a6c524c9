"""GitHub organization analytics endpoints.

GET /api/github?org=&type=repositories|contributors
GET /api/github/summary?org=

Failures are classified here and only here: a missing organization is 404,
everything else is 500. Degraded enhancement or contributor data still
returns 200.
Cache writes started while serving a request complete in a background task
after the response has been sent.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from org_analytics import config
from org_analytics.models.error import ErrorResponse
from org_analytics.models.repository import OrganizationSummary
from org_analytics.services.analytics_service import GitHubAnalyticsService
from org_analytics.services.github_client import ErrorKind, GitHubAPIError

logger = logging.getLogger(__name__)

router = APIRouter()

CACHE_HEADERS = {"Cache-Control": "public, s-maxage=3600, stale-while-revalidate=86400"}

_ERROR_RESPONSES = {404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def get_analytics_service(request: Request) -> GitHubAnalyticsService:
    return GitHubAnalyticsService(request.app.state.github_client, request.app.state.cache_store)


def _resolve_org(org: Optional[str]) -> str:
    return (org or "").strip() or config.DEFAULT_ORG


def _error_response(org: str, exc: Exception) -> JSONResponse:
    if isinstance(exc, GitHubAPIError) and exc.kind == ErrorKind.NOT_FOUND:
        body = ErrorResponse(error="Organization not found", message=f"Organization {org} not found")
        return JSONResponse(status_code=404, content=body.model_dump())
    if isinstance(exc, GitHubAPIError):
        logger.error(
            "github_request_failed org=%s kind=%s status=%s page=%s message=%s",
            org,
            exc.kind.value,
            exc.status_code,
            exc.page,
            exc,
        )
    else:
        logger.error("github_request_failed org=%s", org, exc_info=exc)
    body = ErrorResponse(error="Internal server error", message=str(exc) or type(exc).__name__)
    return JSONResponse(status_code=500, content=body.model_dump())


@router.get("/github", responses=_ERROR_RESPONSES)
async def github_analytics(
    background_tasks: BackgroundTasks,
    org: Optional[str] = Query(None, description="Organization login; defaults to ANALYTICS_DEFAULT_ORG"),
    kind: Literal["repositories", "contributors"] = Query("repositories", alias="type"),
    service: GitHubAnalyticsService = Depends(get_analytics_service),
) -> Response:
    """Repository snapshot (top repositories enhanced) or org-wide contributor ranking."""
    org = _resolve_org(org)
    background_tasks.add_task(service.flush_cache_writes)
    try:
        if kind == "contributors":
            payload = await service.contributors_json(org)
        else:
            payload = await service.repositories_json(org)
    except Exception as exc:
        return _error_response(org, exc)
    return Response(content=payload, media_type="application/json", headers=CACHE_HEADERS)


@router.get("/github/summary", response_model=OrganizationSummary, responses=_ERROR_RESPONSES)
async def github_summary(
    background_tasks: BackgroundTasks,
    org: Optional[str] = Query(None, description="Organization login; defaults to ANALYTICS_DEFAULT_ORG"),
    service: GitHubAnalyticsService = Depends(get_analytics_service),
) -> Response:
    """Totals across the organization's repository snapshot."""
    org = _resolve_org(org)
    background_tasks.add_task(service.flush_cache_writes)
    try:
        summary = await service.organization_summary(org)
    except Exception as exc:
        return _error_response(org, exc)
    return JSONResponse(content=summary.model_dump(), headers=CACHE_HEADERS)
