"""GitHub API client.

Async REST wrapper with:
- optional token auth (GITHUB_TOKEN)
- an explicit deadline on every call
- typed transport errors (GitHubAPIError.kind); status codes are classified by callers
- rate-limit header helpers used by the pagination fetcher
"""

from __future__ import annotations

import asyncio
import re
import time
from enum import Enum
from typing import Any, Optional

import httpx

from org_analytics import config

_LAST_PAGE_RE = re.compile(r'page=(\d+)>; rel="last"')


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    TIMEOUT = "timeout"


class GitHubAPIError(RuntimeError):
    """Upstream failure tagged with its kind and the context it happened in."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        org: Optional[str] = None,
        status_code: Optional[int] = None,
        page: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.org = org
        self.status_code = status_code
        self.page = page


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: float = 20.0,
    ) -> None:
        self._token = token or config.github_token()
        self._base_url = (base_url or config.GITHUB_API_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent or config.GITHUB_USER_AGENT,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    def _url(self, path: str) -> str:
        return path if path.startswith("http") else f"{self._base_url}{path}"

    async def request(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """GET a path or full URL within `timeout` seconds. Status codes are left to the caller."""
        url = self._url(path)
        deadline = self._timeout if timeout is None else timeout
        try:
            async with httpx.AsyncClient(timeout=deadline, headers=self._headers) as client:
                return await asyncio.wait_for(client.get(url, params=params), timeout=deadline)
        except (httpx.TimeoutException, asyncio.TimeoutError) as exc:
            raise GitHubAPIError(ErrorKind.TIMEOUT, f"GitHub API request timed out: {url}") from exc
        except httpx.HTTPError as exc:
            raise GitHubAPIError(ErrorKind.UPSTREAM, f"GitHub API transport error for {url}: {exc}") from exc

    async def list_org_repos(self, org: str, page: int, per_page: int, timeout: Optional[float] = None) -> httpx.Response:
        """One page of an organization's repositories, most-starred first."""
        return await self.request(
            f"/orgs/{org}/repos",
            params={"per_page": per_page, "page": page, "sort": "stars", "direction": "desc"},
            timeout=timeout,
        )

    async def list_commits(self, owner: str, repo: str, per_page: int = 1, timeout: Optional[float] = None) -> httpx.Response:
        return await self.request(f"/repos/{owner}/{repo}/commits", params={"per_page": per_page}, timeout=timeout)

    async def list_workflow_runs(self, owner: str, repo: str, per_page: int = 5, timeout: Optional[float] = None) -> httpx.Response:
        return await self.request(f"/repos/{owner}/{repo}/actions/runs", params={"per_page": per_page}, timeout=timeout)

    async def list_contributors(self, owner: str, repo: str, per_page: int = 100, timeout: Optional[float] = None) -> httpx.Response:
        return await self.request(f"/repos/{owner}/{repo}/contributors", params={"per_page": per_page}, timeout=timeout)


def rate_limit_delay(
    r: httpx.Response,
    threshold: int,
    buffer_seconds: float,
    now: Optional[float] = None,
) -> float:
    """Seconds to wait before the next request, or 0 when quota is comfortable.

    Waits until X-RateLimit-Reset plus `buffer_seconds` once X-RateLimit-Remaining
    drops below `threshold`. Missing or malformed headers never trigger a wait.
    """
    remaining = r.headers.get("X-RateLimit-Remaining")
    reset = r.headers.get("X-RateLimit-Reset")
    try:
        rem_i = int(remaining) if remaining is not None else None
        reset_i = int(reset) if reset is not None else 0
    except ValueError:
        return 0.0
    if rem_i is None or rem_i >= threshold:
        return 0.0
    current = time.time() if now is None else now
    return max(0.0, reset_i - current) + buffer_seconds


def last_page_number(link_header: Optional[str]) -> Optional[int]:
    """Page number of the rel="last" link in a Link header, if present."""
    if not link_header:
        return None
    match = _LAST_PAGE_RE.search(link_header)
    if not match:
        return None
    return int(match.group(1))
