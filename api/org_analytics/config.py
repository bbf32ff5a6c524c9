"""Environment-driven settings for the analytics pipeline."""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(0.1, float(raw))
    except ValueError:
        return default


def github_token() -> str | None:
    token = os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
    if token:
        token = token.strip() or None
    return token


GITHUB_API_BASE_URL = os.getenv("GITHUB_API_BASE_URL", "https://api.github.com").strip()
GITHUB_USER_AGENT = os.getenv("GITHUB_USER_AGENT", "github-org-analytics/1.0")

DEFAULT_ORG = os.getenv("ANALYTICS_DEFAULT_ORG", "datasets").strip() or "datasets"

# Enhanced entries are retained for twice the base snapshot TTL.
CACHE_TTL_SECONDS = _env_int("ANALYTICS_CACHE_TTL_SECONDS", 3600)
ENHANCED_CACHE_TTL_SECONDS = CACHE_TTL_SECONDS * 2
CACHE_BACKEND = os.getenv("ANALYTICS_CACHE_BACKEND", "memory").strip().lower()
CACHE_DATABASE_URL = os.getenv("ANALYTICS_CACHE_DATABASE_URL")

PAGINATION_TIMEOUT_SECONDS = _env_float("GITHUB_PAGINATION_TIMEOUT_SECONDS", 10.0)
ENHANCE_TIMEOUT_SECONDS = _env_float("GITHUB_ENHANCE_TIMEOUT_SECONDS", 3.0)
CONTRIBUTORS_TIMEOUT_SECONDS = _env_float("GITHUB_CONTRIBUTORS_TIMEOUT_SECONDS", 5.0)

REPOS_PER_PAGE = _env_int("GITHUB_REPOS_PER_PAGE", 100)
RATE_LIMIT_THRESHOLD = _env_int("GITHUB_RATE_LIMIT_THRESHOLD", 5)
RATE_LIMIT_BUFFER_SECONDS = _env_float("GITHUB_RATE_LIMIT_BUFFER_SECONDS", 1.0)

ENHANCED_REPOS_LIMIT = _env_int("ANALYTICS_ENHANCED_REPOS_LIMIT", 5)
WORKFLOW_RUNS_LIMIT = 5
CONTRIBUTOR_REPOS_LIMIT = _env_int("ANALYTICS_CONTRIBUTOR_REPOS_LIMIT", 15)
CONTRIBUTORS_PER_REPO = 100

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
