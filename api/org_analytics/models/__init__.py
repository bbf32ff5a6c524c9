"""Pydantic models."""

from org_analytics.models.contributor import AggregatedContributor, Contributor
from org_analytics.models.error import ErrorResponse
from org_analytics.models.repository import (
    EnhancedRepository,
    OrganizationSummary,
    RepositoryEnhancement,
    RepositorySummary,
    WorkflowRun,
)

__all__ = [
    "AggregatedContributor",
    "Contributor",
    "EnhancedRepository",
    "ErrorResponse",
    "OrganizationSummary",
    "RepositoryEnhancement",
    "RepositorySummary",
    "WorkflowRun",
]
