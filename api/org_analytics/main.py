from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from org_analytics import config
from org_analytics.adapters.cache_store import build_cache_store
from org_analytics.routers import github, health
from org_analytics.services.github_client import GitHubClient

app = FastAPI(title="GitHub Organization Analytics API", version=health.HEALTH_VERSION)
logger = logging.getLogger("org_analytics")
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
logger.propagate = False
logger.setLevel(logging.INFO)

# Configure CORS for the dashboard front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Cache backend: SQL when ANALYTICS_CACHE_DATABASE_URL is set, in-memory by default,
# NullCacheStore (fail-open) when ANALYTICS_CACHE_BACKEND=none.
app.state.cache_store = build_cache_store()
app.state.github_client = GitHubClient()
if not app.state.github_client.authenticated:
    logger.warning("github_token_missing: using unauthenticated rate limit")


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""
    return RedirectResponse(url="/docs")


app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(github.router, prefix="/api", tags=["github"])
