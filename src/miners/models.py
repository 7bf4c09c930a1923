"""
Repository Mining Data Models.

Defines the common data models used across different repository mining implementations.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RepositoryReference(BaseModel):
    """A monitored repository, as listed in the repository list object."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class RepositoryMetadata(BaseModel):
    """Repository-level facts from the get-repository call."""

    description: Optional[str] = None
    stars: int
    forks: int
    open_issues: int
    watchers: int
    language: Optional[str] = None
    license_name: Optional[str] = None
    topics: List[str] = []
    size: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None


class RepositoryPRData(BaseModel):
    """Raw Pull Request data from repository."""

    pr_number: int
    state: str
    created_at: datetime
    merged_at: Optional[datetime]
    closed_at: Optional[datetime]


class RepositoryIssueData(BaseModel):
    """Raw Issue data from repository."""

    issue_number: int
    state: str
    created_at: datetime
    closed_at: Optional[datetime]
    # Issues endpoint also returns pull requests, flagged by a back-reference
    is_pull_request: bool = False


class RepositoryReleaseData(BaseModel):
    """Latest published release."""

    name: Optional[str]
    published_at: Optional[datetime]


class RepositoryData(BaseModel):
    """Container for all mined repository data."""

    repository_name: str
    collection_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    metadata: RepositoryMetadata
    pull_requests: List[RepositoryPRData]
    issues: List[RepositoryIssueData]
    contributors_count: int
    latest_release: Optional[RepositoryReleaseData] = None
    # Weekly commit totals, oldest first; None when the statistics are unavailable
    weekly_commits: Optional[List[int]] = None
