"""Walk an organization's paginated repository listing to completion."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from org_analytics import config
from org_analytics.services.github_client import (
    ErrorKind,
    GitHubAPIError,
    GitHubClient,
    rate_limit_delay,
)

log = logging.getLogger(__name__)


class RepositoryFetcher:
    """Sequential page walk over GET /orgs/{org}/repos, most-starred first.

    Pages are requested one at a time because both termination (an empty page)
    and rate-limit backoff depend on the previous response. The timeout bounds
    the time spent waiting on GitHub across all pages; rate-limit sleeps delay
    the walk but are not charged against it.
    """

    def __init__(
        self,
        client: GitHubClient,
        *,
        per_page: int = config.REPOS_PER_PAGE,
        timeout: float = config.PAGINATION_TIMEOUT_SECONDS,
        rate_limit_threshold: int = config.RATE_LIMIT_THRESHOLD,
        rate_limit_buffer: float = config.RATE_LIMIT_BUFFER_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._per_page = per_page
        self._timeout = timeout
        self._threshold = rate_limit_threshold
        self._buffer = rate_limit_buffer
        self._sleep = sleep
        self._clock = clock

    async def fetch_all(self, org: str) -> list[dict[str, Any]]:
        """Every repository of `org` as raw API payloads, in page order.

        Raises GitHubAPIError: NOT_FOUND when the organization does not exist,
        TIMEOUT when the deadline is exhausted, UPSTREAM for any other failure.
        """
        repos: list[dict[str, Any]] = []
        budget = self._timeout
        page = 1
        while True:
            if budget <= 0:
                raise GitHubAPIError(ErrorKind.TIMEOUT, "GitHub API request timed out", org=org, page=page)
            started = time.monotonic()
            try:
                r = await self._client.list_org_repos(org, page=page, per_page=self._per_page, timeout=budget)
            except GitHubAPIError as exc:
                exc.org = org
                exc.page = page
                if exc.kind == ErrorKind.TIMEOUT:
                    raise GitHubAPIError(
                        ErrorKind.TIMEOUT, "GitHub API request timed out", org=org, page=page
                    ) from exc
                raise
            budget -= time.monotonic() - started

            if r.status_code == 404:
                raise GitHubAPIError(
                    ErrorKind.NOT_FOUND, f"Organization {org} not found", org=org, status_code=404, page=page
                )
            if r.status_code >= 400:
                raise GitHubAPIError(
                    ErrorKind.UPSTREAM,
                    f"Failed to fetch repositories (page {page}): {r.reason_phrase or r.status_code}",
                    org=org,
                    status_code=r.status_code,
                    page=page,
                )

            items = r.json()
            if not isinstance(items, list) or not items:
                break
            repos.extend(items)
            log.info("repos_page org=%s page=%s items=%s total=%s", org, page, len(items), len(repos))
            page += 1

            delay = rate_limit_delay(r, self._threshold, self._buffer, now=self._clock())
            if delay > 0:
                log.warning(
                    "rate_limit_backoff org=%s remaining=%s wait_s=%.1f",
                    org,
                    r.headers.get("X-RateLimit-Remaining"),
                    delay,
                )
                await self._sleep(delay)
        return repos
