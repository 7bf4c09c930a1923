"""
GitHub Repository Analysis Module.

Derives the insight record of a repository from its mined data:
- Issue and pull request counts by state
- Average time to merge / close pull requests and to close issues
- Recent commit activity
- Release and repository metadata

Derivation is a pure function of the mined data; it issues no API calls.
"""

import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import pandas as pd
from pydantic import BaseModel

from config import logger
from miners.models import RepositoryData
from analyzers.models import RepositoryInsight

GITHUB_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(value: Optional[datetime]) -> str:
    """Render a timestamp the way the GitHub API does, empty if absent."""
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(GITHUB_TIMESTAMP_FORMAT)


def calculate_average_hours(
    items: Sequence[BaseModel], start_key: str, end_key: str
) -> float:
    """
    Mean elapsed time between two timestamps of each item, in whole hours.

    Args:
        items (Sequence[BaseModel]): Filtered issues or pull requests
        start_key (str): Attribute holding the start timestamp
        end_key (str): Attribute holding the end timestamp

    Returns:
        float: Mean hours rounded half up to an integer, 0 for no items
    """
    if not items:
        return 0.0

    df = pd.DataFrame([item.model_dump() for item in items])
    durations = (
        pd.to_datetime(df[end_key], utc=True) - pd.to_datetime(df[start_key], utc=True)
    ).dropna()
    if durations.empty:
        return 0.0

    mean_hours = durations.dt.total_seconds().mean() / 3600
    return float(math.floor(mean_hours + 0.5))


def summarize_commit_activity(weekly_commits: Optional[List[int]]) -> Tuple[int, int]:
    """
    Commits in the most recent week and in the most recent four weeks.

    Args:
        weekly_commits (Optional[List[int]]): Weekly totals, oldest first

    Returns:
        Tuple[int, int]: (last week, last month), zeros when no data
    """
    if not weekly_commits:
        return 0, 0
    return weekly_commits[-1], sum(weekly_commits[-4:])


class InsightAnalyzer:
    """
    Turns mined repository data into a RepositoryInsight.

    The analyzer is stateless: the same mined data always yields the same record.
    """

    def analyze_repository(self, repo_data: RepositoryData) -> RepositoryInsight:
        """
        Derive the insight record for one repository.

        Args:
            repo_data (RepositoryData): Repository data

        Returns:
            RepositoryInsight: Derived metrics
        """
        logger.debug(
            {
                "message": "Starting repository analysis",
                "repository": repo_data.repository_name,
            }
        )

        closed_issues = [
            issue
            for issue in repo_data.issues
            if issue.state == "closed" and not issue.is_pull_request
        ]
        open_prs = [pr for pr in repo_data.pull_requests if pr.state == "open"]
        merged_prs = [pr for pr in repo_data.pull_requests if pr.merged_at is not None]
        closed_unmerged_prs = [
            pr
            for pr in repo_data.pull_requests
            if pr.state == "closed" and pr.merged_at is None
        ]

        if not repo_data.weekly_commits:
            logger.warning(
                {
                    "message": "No commit activity available, defaulting to 0",
                    "repository": repo_data.repository_name,
                }
            )
        commits_last_week, commits_last_month = summarize_commit_activity(
            repo_data.weekly_commits
        )

        metadata = repo_data.metadata
        release = repo_data.latest_release

        return RepositoryInsight(
            repo_name=repo_data.repository_name,
            description=metadata.description or "",
            stars=metadata.stars,
            forks=metadata.forks,
            open_issues=metadata.open_issues,
            closed_issues=len(closed_issues),
            open_pull_requests=len(open_prs),
            merged_pull_requests=len(merged_prs),
            closed_pull_requests=len(closed_unmerged_prs),
            watchers=metadata.watchers,
            language=metadata.language or "",
            topics=metadata.topics,
            license=metadata.license_name or "No License",
            size=metadata.size,
            created_at=format_timestamp(metadata.created_at),
            updated_at=format_timestamp(metadata.updated_at),
            pushed_at=format_timestamp(metadata.pushed_at),
            latest_release=(release.name if release and release.name else "No releases"),
            latest_release_date=format_timestamp(release.published_at if release else None),
            contributors_count=repo_data.contributors_count,
            commits_last_week=commits_last_week,
            commits_last_month=commits_last_month,
            average_time_to_merge_pr=calculate_average_hours(
                merged_prs, "created_at", "merged_at"
            ),
            average_time_to_close_pr=calculate_average_hours(
                closed_unmerged_prs, "created_at", "closed_at"
            ),
            average_time_to_close_issue=calculate_average_hours(
                closed_issues, "created_at", "closed_at"
            ),
        )
