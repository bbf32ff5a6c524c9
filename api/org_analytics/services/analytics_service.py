"""Organization analytics: repository snapshot, contributor ranking, totals.

Both modes are cache-aside over one key per organization. A hit returns the
stored JSON verbatim, so repeated requests inside the TTL are byte-identical
and issue no upstream calls.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from pydantic import TypeAdapter

from org_analytics import config
from org_analytics.adapters.cache_store import CacheStore
from org_analytics.models.contributor import AggregatedContributor
from org_analytics.models.repository import EnhancedRepository, OrganizationSummary, RepositorySummary
from org_analytics.services.cache_aside import CacheAside, contributors_key, repositories_key
from org_analytics.services.contributor_aggregator import ContributorAggregator, top_repositories
from org_analytics.services.github_client import GitHubClient
from org_analytics.services.repo_enhancer import RepoEnhancer
from org_analytics.services.repository_fetcher import RepositoryFetcher

log = logging.getLogger(__name__)

_REPOSITORY_LIST = TypeAdapter(list[EnhancedRepository])
_CONTRIBUTOR_LIST = TypeAdapter(list[AggregatedContributor])


class GitHubAnalyticsService:
    def __init__(
        self,
        client: GitHubClient,
        store: CacheStore,
        *,
        cache_ttl: int = config.CACHE_TTL_SECONDS,
        enhanced_limit: int = config.ENHANCED_REPOS_LIMIT,
        contributor_repo_limit: int = config.CONTRIBUTOR_REPOS_LIMIT,
        fetcher: Optional[RepositoryFetcher] = None,
        enhancer: Optional[RepoEnhancer] = None,
        aggregator: Optional[ContributorAggregator] = None,
    ) -> None:
        self._cache = CacheAside(store)
        self._cache_ttl = cache_ttl
        self._enhanced_limit = enhanced_limit
        self._contributor_repo_limit = contributor_repo_limit
        self._fetcher = fetcher or RepositoryFetcher(client)
        self._enhancer = enhancer or RepoEnhancer(client, self._cache, ttl=cache_ttl * 2)
        self._aggregator = aggregator or ContributorAggregator(client)

    async def _summaries(self, org: str) -> list[RepositorySummary]:
        return [RepositorySummary.from_api(item) for item in await self._fetcher.fetch_all(org)]

    async def repositories_json(self, org: str) -> str:
        """JSON array of the organization's repositories, top ones enhanced."""

        async def _compute() -> str:
            summaries = await self._summaries(org)
            repos = [EnhancedRepository.from_summary(summary) for summary in summaries]
            repos = await self._enhancer.enhance_top(org, repos, limit=self._enhanced_limit)
            log.info("repositories_snapshot org=%s repos=%s enhanced=%s", org, len(repos), min(len(repos), self._enhanced_limit))
            return _REPOSITORY_LIST.dump_json(repos).decode()

        return await self._cache.get_or_compute(repositories_key(org), self._cache_ttl, _compute)

    async def contributors_json(self, org: str) -> str:
        """JSON array of contributors across the most-starred repositories, highest total first."""

        async def _compute() -> str:
            selected = top_repositories(await self._summaries(org), self._contributor_repo_limit)
            ranking = await self._aggregator.aggregate(org, selected)
            return _CONTRIBUTOR_LIST.dump_json(ranking).decode()

        return await self._cache.get_or_compute(contributors_key(org), self._cache_ttl, _compute)

    async def flush_cache_writes(self) -> None:
        """Wait for cache writes started while serving the request."""
        await self._cache.flush()

    async def repositories(self, org: str) -> list[EnhancedRepository]:
        return _REPOSITORY_LIST.validate_json(await self.repositories_json(org))

    async def contributors(self, org: str) -> list[AggregatedContributor]:
        return _CONTRIBUTOR_LIST.validate_json(await self.contributors_json(org))

    async def organization_summary(self, org: str) -> OrganizationSummary:
        """Totals derived from the repository snapshot."""
        repos = await self.repositories(org)
        languages = Counter(repo.language for repo in repos if repo.language)
        return OrganizationSummary(
            organization=org,
            repositories=len(repos),
            stars=sum(repo.stargazers_count for repo in repos),
            forks=sum(repo.forks_count for repo in repos),
            commits=sum(repo.commits_count for repo in repos),
            open_issues=sum(repo.open_issues_count for repo in repos),
            bot_actions=sum(1 for repo in repos for run in repo.actions if run.is_bot),
            languages=dict(languages.most_common()),
        )
