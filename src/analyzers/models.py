"""
Repository Insight Data Models.

Defines the output record produced for each repository on each run.
Attribute names are snake_case; the serialization aliases are the column
names of the insights table.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class RepositoryInsight(BaseModel):
    """Metrics for a repository, one row of the insights table."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    repo_name: str = Field(alias="repoName")
    description: str = ""
    stars: int
    forks: int
    open_issues: int = Field(alias="openIssues")
    closed_issues: int = Field(alias="closedIssues")
    open_pull_requests: int = Field(alias="openPullRequests")
    merged_pull_requests: int = Field(alias="mergedPullRequests")
    closed_pull_requests: int = Field(alias="closedPullRequests")
    watchers: int
    language: str = ""
    topics: List[str] = []
    license: str = "No License"
    size: int
    created_at: str = Field(default="", alias="createdAt")
    updated_at: str = Field(default="", alias="updatedAt")
    pushed_at: str = Field(default="", alias="pushedAt")
    latest_release: str = Field(default="No releases", alias="latestRelease")
    latest_release_date: str = Field(default="", alias="latestReleaseDate")
    contributors_count: int = Field(alias="contributorsCount")
    commits_last_week: int = Field(default=0, alias="commitsLastWeek")
    commits_last_month: int = Field(default=0, alias="commitsLastMonth")
    average_time_to_merge_pr: float = Field(default=0.0, alias="averageTimeToMergePR")
    average_time_to_close_pr: float = Field(default=0.0, alias="averageTimeToClosePR")
    average_time_to_close_issue: float = Field(
        default=0.0, alias="averageTimeToCloseIssue"
    )
