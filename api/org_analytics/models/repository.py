"""Repository models for the organization snapshot.

Fields mirror the GitHub REST payload names so the dashboard can consume the
JSON without a mapping layer.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkflowRun(BaseModel):
    """One recent GitHub Actions run."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: Optional[str] = None
    status: Optional[str] = None
    conclusion: Optional[str] = None  # null while the run is in progress
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    actor: str = "unknown"
    is_bot: bool = False


class RepositoryEnhancement(BaseModel):
    """Per-repository detail cached under the enhanced key, without the listing fields."""

    model_config = ConfigDict(frozen=True)

    commits_count: int = 0
    actions: list[WorkflowRun] = Field(default_factory=list)


class RepositorySummary(BaseModel):
    """Snapshot of one repository as listed by the organization endpoint."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: Optional[str] = None
    html_url: str
    stargazers_count: int = 0
    forks_count: int = 0
    updated_at: Optional[str] = None
    open_issues_count: int = 0
    language: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "RepositorySummary":
        return cls(
            id=payload["id"],
            name=payload["name"],
            description=payload.get("description"),
            html_url=payload.get("html_url") or "",
            stargazers_count=payload.get("stargazers_count") or 0,
            forks_count=payload.get("forks_count") or 0,
            updated_at=payload.get("updated_at"),
            open_issues_count=payload.get("open_issues_count") or 0,
            language=payload.get("language"),
        )


class EnhancedRepository(RepositorySummary):
    """Repository summary plus per-repository detail.

    Only the top repositories are enhanced; the rest carry the zero defaults.
    `commits_count` is an approximation (see repo_enhancer).
    """

    commits_count: int = 0
    actions: list[WorkflowRun] = Field(default_factory=list)

    @classmethod
    def from_summary(
        cls,
        summary: RepositorySummary,
        commits_count: int = 0,
        actions: Optional[list[WorkflowRun]] = None,
    ) -> "EnhancedRepository":
        base = summary.model_dump(include=set(RepositorySummary.model_fields))
        return cls(**base, commits_count=commits_count, actions=actions or [])


class OrganizationSummary(BaseModel):
    """Totals across one organization snapshot."""

    organization: str
    repositories: int
    stars: int
    forks: int
    commits: int  # sum of approximate commit counts of enhanced repositories
    open_issues: int
    bot_actions: int
    languages: dict[str, int] = Field(default_factory=dict)
