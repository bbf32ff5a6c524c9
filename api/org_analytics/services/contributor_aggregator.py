"""Org-wide contributor ranking across the most-starred repositories.

Contributor lists are fetched concurrently (fan-out) and folded into a single
login -> totals map in one sequential pass afterward (fan-in), so the map has
exactly one writer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from org_analytics import config
from org_analytics.models.contributor import AggregatedContributor, Contributor
from org_analytics.models.repository import RepositorySummary
from org_analytics.services.github_client import GitHubAPIError, GitHubClient

log = logging.getLogger(__name__)


def top_repositories(repos: Iterable[RepositorySummary], limit: int) -> list[RepositorySummary]:
    """The `limit` most-starred repositories; equal star counts keep listing order."""
    return sorted(repos, key=lambda repo: repo.stargazers_count, reverse=True)[:limit]


class _Accumulator:
    __slots__ = ("login", "avatar_url", "html_url", "total", "repos")

    def __init__(self, contributor: Contributor) -> None:
        self.login = contributor.login
        self.avatar_url = contributor.avatar_url
        self.html_url = contributor.html_url
        self.total = 0
        self.repos: list[str] = []


def reduce_contributors(per_repo: Iterable[tuple[str, list[Contributor]]]) -> list[AggregatedContributor]:
    """Fold (repository name, contributors) pairs into a ranking by total contributions.

    Totals are summed across repositories; each repository is recorded once per
    login. Ties keep first-seen order.
    """
    by_login: dict[str, _Accumulator] = {}
    for repo_name, contributors in per_repo:
        for contributor in contributors:
            acc = by_login.get(contributor.login)
            if acc is None:
                acc = by_login[contributor.login] = _Accumulator(contributor)
            acc.total += contributor.contributions
            if repo_name not in acc.repos:
                acc.repos.append(repo_name)

    ranked = sorted(by_login.values(), key=lambda acc: acc.total, reverse=True)
    return [
        AggregatedContributor(
            login=acc.login,
            avatar_url=acc.avatar_url,
            html_url=acc.html_url,
            total_contributions=acc.total,
            repos_contributed_to=acc.repos,
        )
        for acc in ranked
    ]


class ContributorAggregator:
    def __init__(
        self,
        client: GitHubClient,
        *,
        timeout: float = config.CONTRIBUTORS_TIMEOUT_SECONDS,
        per_repo_limit: int = config.CONTRIBUTORS_PER_REPO,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._per_repo_limit = per_repo_limit

    async def fetch_contributors(self, org: str, repo: str) -> list[Contributor]:
        """Human contributors of one repository; any failure yields []."""
        try:
            r = await self._client.list_contributors(org, repo, per_page=self._per_repo_limit, timeout=self._timeout)
        except GitHubAPIError as e:
            log.warning("contributors_degraded org=%s repo=%s kind=%s", org, repo, e.kind.value)
            return []
        # 204: empty repository, 404: gone or hidden
        if r.status_code in (204, 404):
            return []
        if r.status_code >= 400:
            log.warning("contributors_degraded org=%s repo=%s status=%s", org, repo, r.status_code)
            return []
        try:
            payload = r.json()
            if not isinstance(payload, list):
                return []
            contributors = [
                Contributor.from_api(item)
                for item in payload[: self._per_repo_limit]
                if isinstance(item, dict) and item.get("login")
            ]
        except ValueError as e:
            # also covers pydantic validation errors
            log.warning("contributors_degraded org=%s repo=%s reason=invalid_payload error=%s", org, repo, e)
            return []
        return [c for c in contributors if not c.is_bot]

    async def aggregate(self, org: str, repos: list[RepositorySummary]) -> list[AggregatedContributor]:
        names = [repo.name for repo in repos]
        results = await asyncio.gather(*(self.fetch_contributors(org, name) for name in names))
        ranking = reduce_contributors(zip(names, results))
        log.info("contributors_aggregated org=%s repos=%s contributors=%s", org, len(names), len(ranking))
        return ranking
