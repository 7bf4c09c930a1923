"""
GitHub Repository Data Mining Module.

This module handles the extraction of raw GitHub repository data for the
insights collection. It focuses on efficient data collection while maintaining
type safety through Pydantic models.

PyGithub is synchronous, so each listing is consumed in a worker thread and
the five per-repository calls are joined with ``asyncio.gather``.
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

import requests
from github import Auth, Github, GithubException, UnknownObjectException
from github.Issue import Issue
from github.PullRequest import PullRequest
from github.Repository import Repository

from config import logger
from errors import AuthError, RepositoryFetchError
from miners.base import RepositoryMiner
from miners.models import (
    RepositoryData,
    RepositoryIssueData,
    RepositoryMetadata,
    RepositoryPRData,
    RepositoryReference,
    RepositoryReleaseData,
)


class GitHubMiner(RepositoryMiner):
    """
    GitHubMiner is responsible for mining data from GitHub repositories.
    It extracts metadata, issues, pull requests, contributors, the latest
    release and weekly commit activity, transforming them into Pydantic models.
    """

    def __init__(self, github_token: str, base_url: Optional[str] = None):
        """Initialize GitHub miner with authentication.

        Args:
            github_token (str): GitHub API token for authentication.
            base_url (Optional[str]): GitHub Enterprise API URL, public API if None.
        """
        kwargs = {"auth": Auth.Token(github_token)}
        if base_url:
            kwargs["base_url"] = base_url
        self.github = Github(**kwargs)

    def authenticate(self) -> str:
        """
        Resolve the user the token belongs to.

        Returns:
            str: Login of the authenticated user

        Raises:
            AuthError: If GitHub rejects the token or cannot be reached
        """
        try:
            login = self.github.get_user().login
            self._check_rate_limit("Authentication")
        except (GithubException, requests.exceptions.RequestException) as e:
            logger.error(
                {"message": "Error authenticating with GitHub", "error": str(e)}
            )
            raise AuthError("Failed to authenticate with GitHub") from e

        logger.info({"message": "Authenticated as GitHub user", "login": login})
        return login

    def _check_rate_limit(self, check_name: str = None) -> None:
        """
        Log the GitHub API rate limit status.

        Args:
            check_name (Optional[str]): Identifier for the rate limit check point.
        """
        remaining, limit = self.github.rate_limiting
        reset_time = datetime.fromtimestamp(
            self.github.rate_limiting_resettime, timezone.utc
        )
        now = datetime.now(timezone.utc)

        logger.info(
            {
                "message": f"{check_name} API rate limit status",
                "remaining_points": remaining,
                "total_points": limit,
                "reset_time": reset_time.isoformat(),
                "minutes_to_reset": (reset_time - now).total_seconds() / 60,
            }
        )

        # If less than 10% of rate limit remains, log a warning
        if remaining < (limit * 0.1):
            logger.warning(
                {
                    "message": "GitHub API rate limit running low",
                    "remaining_points": remaining,
                    "reset_time": reset_time.isoformat(),
                }
            )

    def _get_metadata(self, repo: Repository) -> RepositoryMetadata:
        """Convert a GitHub Repository object to a Pydantic model.

        Args:
            repo (Repository): The GitHub Repository object.

        Returns:
            RepositoryMetadata: Repository-level facts.
        """
        return RepositoryMetadata(
            description=repo.description,
            stars=repo.stargazers_count,
            forks=repo.forks_count,
            open_issues=repo.open_issues_count,
            watchers=repo.subscribers_count,
            language=repo.language,
            license_name=repo.license.name if repo.license else None,
            topics=list(repo.topics or []),
            size=repo.size,
            created_at=repo.created_at,
            updated_at=repo.updated_at,
            pushed_at=repo.pushed_at,
        )

    def _get_pr_data(self, pr: PullRequest) -> RepositoryPRData:
        """Convert a GitHub PullRequest object to a Pydantic model.

        Args:
            pr (PullRequest): The GitHub PullRequest object.

        Returns:
            RepositoryPRData: A Pydantic model representing the PR data.
        """
        return RepositoryPRData(
            pr_number=pr.number,
            state=pr.state,
            created_at=pr.created_at,
            merged_at=pr.merged_at,
            closed_at=pr.closed_at,
        )

    def _get_issue_data(self, issue: Issue) -> RepositoryIssueData:
        """Convert a GitHub Issue object to a Pydantic model.

        Args:
            issue (Issue): The GitHub Issue object.

        Returns:
            RepositoryIssueData: A Pydantic model representing the issue data.
        """
        return RepositoryIssueData(
            issue_number=issue.number,
            state=issue.state,
            created_at=issue.created_at,
            closed_at=issue.closed_at,
            is_pull_request=issue.pull_request is not None,
        )

    @staticmethod
    def _guarded(cancelled: threading.Event, call: Callable, *args):
        """Run one per-repository call, flagging the repository as failed on error."""
        try:
            return call(*args)
        except Exception:
            cancelled.set()
            raise

    def _collect_listing(
        self, listing: Iterable, convert: Callable, cancelled: threading.Event
    ) -> List:
        """Consume a paginated listing, stopping early once the repository has failed."""
        items = []
        for item in listing:
            if cancelled.is_set():
                break
            items.append(convert(item))
        return items

    def _list_issues(
        self, repo: Repository, cancelled: threading.Event
    ) -> List[RepositoryIssueData]:
        return self._collect_listing(
            repo.get_issues(state="all"), self._get_issue_data, cancelled
        )

    def _list_pulls(
        self, repo: Repository, cancelled: threading.Event
    ) -> List[RepositoryPRData]:
        return self._collect_listing(
            repo.get_pulls(state="all"), self._get_pr_data, cancelled
        )

    def _count_contributors(self, repo: Repository, cancelled: threading.Event) -> int:
        return len(self._collect_listing(repo.get_contributors(), lambda c: c, cancelled))

    def _get_latest_release(self, repo: Repository) -> Optional[RepositoryReleaseData]:
        """Fetch the latest release, None when the repository has none."""
        try:
            release = repo.get_latest_release()
        except UnknownObjectException:
            return None
        return RepositoryReleaseData(
            name=release.title, published_at=release.published_at
        )

    def _get_weekly_commits(self, repo: Repository) -> Optional[List[int]]:
        """
        Fetch weekly commit totals, oldest week first.

        GitHub answers 202 while statistics are being computed, which PyGithub
        surfaces as None. Malformed buckets are reported and treated as missing.
        """
        stats = repo.get_stats_commit_activity()
        if not isinstance(stats, list):
            logger.warning(
                {
                    "message": "Unexpected commit data structure",
                    "repository": repo.full_name,
                }
            )
            return None
        try:
            return [int(week.total or 0) for week in stats]
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(
                {
                    "message": "Unexpected commit data structure",
                    "repository": repo.full_name,
                    "error": str(e),
                }
            )
            return None

    async def mine_repository(self, reference: RepositoryReference) -> RepositoryData:
        """
        Extract and transform data from a specified GitHub repository.

        Args:
            reference (RepositoryReference): Repository owner and name.

        Returns:
            RepositoryData: A Pydantic model containing the mined repository data.

        Raises:
            RepositoryFetchError: Raised if any call for the repository fails.
        """
        repo_name = reference.full_name
        logger.info({"message": "Fetching repository data", "repository": repo_name})

        try:
            repo: Repository = await asyncio.to_thread(self.github.get_repo, repo_name)
            # Set by the first failing call so the other listings stop paging
            cancelled = threading.Event()

            (
                issues,
                pull_requests,
                contributors_count,
                latest_release,
                weekly_commits,
            ) = await asyncio.gather(
                asyncio.to_thread(
                    self._guarded, cancelled, self._list_issues, repo, cancelled
                ),
                asyncio.to_thread(
                    self._guarded, cancelled, self._list_pulls, repo, cancelled
                ),
                asyncio.to_thread(
                    self._guarded, cancelled, self._count_contributors, repo, cancelled
                ),
                asyncio.to_thread(
                    self._guarded, cancelled, self._get_latest_release, repo
                ),
                asyncio.to_thread(
                    self._guarded, cancelled, self._get_weekly_commits, repo
                ),
            )

            repo_data = RepositoryData(
                repository_name=repo_name,
                metadata=self._get_metadata(repo),
                pull_requests=pull_requests,
                issues=issues,
                contributors_count=contributors_count,
                latest_release=latest_release,
                weekly_commits=weekly_commits,
            )

        except Exception as e:
            raise RepositoryFetchError(repo_name, e) from e

        logger.info(
            {"message": "Successfully fetched repository data", "repository": repo_name}
        )
        return repo_data
