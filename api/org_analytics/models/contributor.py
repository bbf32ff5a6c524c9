"""Contributor models: raw per-repository entries and the org-wide ranking."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Contributor(BaseModel):
    """Contributor entry from one repository's contributor list."""

    model_config = ConfigDict(frozen=True)

    login: str
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    contributions: int = 0
    is_bot: bool = False

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Contributor":
        return cls(
            login=payload["login"],
            avatar_url=payload.get("avatar_url"),
            html_url=payload.get("html_url"),
            contributions=payload.get("contributions") or 0,
            is_bot=payload.get("type") == "Bot",
        )


class AggregatedContributor(BaseModel):
    """Contributor totals across the repositories considered for an organization."""

    model_config = ConfigDict(frozen=True)

    login: str
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    total_contributions: int = 0
    repos_contributed_to: list[str] = Field(default_factory=list)  # distinct repository names
