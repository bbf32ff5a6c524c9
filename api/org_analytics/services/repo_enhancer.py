"""Per-repository enhancement: approximate commit count + recent workflow runs.

Enhancement is best effort. Each sub-fetch degrades to its zero value on any
failure, and a failure of the whole step returns the plain summary.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from org_analytics import config
from org_analytics.models.repository import EnhancedRepository, RepositoryEnhancement, RepositorySummary, WorkflowRun
from org_analytics.services.cache_aside import CacheAside, enhanced_repository_key
from org_analytics.services.github_client import GitHubAPIError, GitHubClient, last_page_number

log = logging.getLogger(__name__)

BOT_MARKER = "[bot]"


def approximate_commit_count(link_header: Optional[str]) -> int:
    """Approximate total commits from a per_page=1 commit listing.

    With one commit per page the rel="last" page number equals the commit
    count on the default branch at request time. It is a heuristic: no Link
    header (a single page) or an unexpected format yields 0.
    """
    return last_page_number(link_header) or 0


def workflow_run_from_api(payload: dict) -> WorkflowRun:
    actor = (payload.get("actor") or {}).get("login") or "unknown"
    return WorkflowRun(
        id=payload["id"],
        name=payload.get("name"),
        status=payload.get("status"),
        conclusion=payload.get("conclusion"),
        created_at=payload.get("created_at"),
        updated_at=payload.get("updated_at"),
        actor=actor,
        is_bot=BOT_MARKER in actor,
    )


class RepoEnhancer:
    def __init__(
        self,
        client: GitHubClient,
        cache: CacheAside,
        *,
        ttl: int = config.ENHANCED_CACHE_TTL_SECONDS,
        timeout: float = config.ENHANCE_TIMEOUT_SECONDS,
        runs_limit: int = config.WORKFLOW_RUNS_LIMIT,
    ) -> None:
        self._client = client
        self._cache = cache
        self._ttl = ttl
        self._timeout = timeout
        self._runs_limit = runs_limit

    async def _commit_count(self, org: str, repo: str) -> Optional[int]:
        try:
            r = await self._client.list_commits(org, repo, per_page=1, timeout=self._timeout)
        except GitHubAPIError as e:
            log.warning("commit_count_degraded org=%s repo=%s kind=%s", org, repo, e.kind.value)
            return None
        if r.status_code >= 400:
            log.warning("commit_count_degraded org=%s repo=%s status=%s", org, repo, r.status_code)
            return None
        return approximate_commit_count(r.headers.get("link"))

    async def _workflow_runs(self, org: str, repo: str) -> Optional[list[WorkflowRun]]:
        try:
            r = await self._client.list_workflow_runs(org, repo, per_page=self._runs_limit, timeout=self._timeout)
        except GitHubAPIError as e:
            log.warning("workflow_runs_degraded org=%s repo=%s kind=%s", org, repo, e.kind.value)
            return None
        if r.status_code >= 400:
            log.warning("workflow_runs_degraded org=%s repo=%s status=%s", org, repo, r.status_code)
            return None
        try:
            runs = (r.json() or {}).get("workflow_runs") or []
            return [workflow_run_from_api(run) for run in runs]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # also covers pydantic validation errors
            log.warning("workflow_runs_degraded org=%s repo=%s reason=invalid_payload error=%s", org, repo, e)
            return None

    async def enhance(self, org: str, repo: RepositorySummary) -> EnhancedRepository:
        """Enhanced copy of `repo`; never raises.

        Only the enhancement detail is cached. Listing fields always come from
        the `repo` passed in, so a long-lived entry never carries stale stars.
        """
        key = enhanced_repository_key(org, repo.name)
        try:
            cached = await self._cache.read(key)
            if cached is not None:
                detail = RepositoryEnhancement.model_validate_json(cached)
                return EnhancedRepository.from_summary(repo, detail.commits_count, detail.actions)

            commits_count, actions = await asyncio.gather(
                self._commit_count(org, repo.name),
                self._workflow_runs(org, repo.name),
            )
            enhanced = EnhancedRepository.from_summary(repo, commits_count=commits_count or 0, actions=actions)
            # A degraded result is served but not retained for the long enhancement TTL.
            if commits_count is not None and actions is not None:
                detail = RepositoryEnhancement(commits_count=commits_count, actions=actions)
                self._cache.write(key, detail.model_dump_json(), self._ttl)
            return enhanced
        except Exception:
            log.exception("enhance_failed org=%s repo=%s", org, repo.name)
            return EnhancedRepository.from_summary(repo)

    async def enhance_top(
        self, org: str, repos: list[EnhancedRepository], limit: int = config.ENHANCED_REPOS_LIMIT
    ) -> list[EnhancedRepository]:
        """Enhance the first `limit` entries concurrently; the rest are returned unchanged."""
        out = list(repos)
        count = min(limit, len(out))

        async def _enhance_slot(index: int) -> None:
            out[index] = await self.enhance(org, out[index])

        await asyncio.gather(*(_enhance_slot(i) for i in range(count)))
        return out
