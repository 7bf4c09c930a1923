"""
GitHub Miner Test Suite.

Covers conversion of PyGithub objects, the optional release and commit
statistics, per-repository error wrapping and authentication.
"""

import threading
import time

import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import Mock, patch

from github import BadCredentialsException, GithubException, UnknownObjectException

from errors import AuthError, RepositoryFetchError
from miners.github_miner import GitHubMiner
from miners.models import RepositoryData, RepositoryReference

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)
CLOSED = datetime(2024, 1, 2, tzinfo=timezone.utc)


def make_issue(number, state, pull_request=None):
    issue = Mock()
    issue.number = number
    issue.state = state
    issue.created_at = CREATED
    issue.closed_at = CLOSED if state == "closed" else None
    issue.pull_request = pull_request
    return issue


def make_pull(number, state, merged):
    pr = Mock()
    pr.number = number
    pr.state = state
    pr.created_at = CREATED
    pr.merged_at = CLOSED if merged else None
    pr.closed_at = CLOSED if state == "closed" else None
    return pr


@pytest.fixture
def mock_repo():
    """Create a mock PyGithub repository."""
    repo = Mock()
    repo.full_name = "aws-samples/anthropic-on-aws"
    repo.description = "Samples"
    repo.stargazers_count = 100
    repo.forks_count = 20
    repo.open_issues_count = 4
    repo.subscribers_count = 8
    repo.language = "Python"
    repo.license = Mock()
    repo.license.name = "MIT No Attribution"
    repo.topics = ["bedrock"]
    repo.size = 512
    repo.created_at = CREATED
    repo.updated_at = CLOSED
    repo.pushed_at = CLOSED
    repo.get_issues.return_value = [
        make_issue(1, "open"),
        make_issue(2, "closed"),
        make_issue(3, "closed", pull_request=Mock()),
    ]
    repo.get_pulls.return_value = [
        make_pull(3, "closed", merged=True),
        make_pull(4, "open", merged=False),
    ]
    repo.get_contributors.return_value = [Mock(), Mock(), Mock()]
    release = Mock()
    release.title = "v2.0"
    release.published_at = CLOSED
    repo.get_latest_release.return_value = release
    repo.get_stats_commit_activity.return_value = [
        Mock(total=3),
        Mock(total=None),
        Mock(total=6),
    ]
    return repo


@pytest.fixture
def miner(mock_repo):
    """Create GitHubMiner with a mocked PyGithub client."""
    with patch("miners.github_miner.Github") as github_cls:
        github = github_cls.return_value
        github.get_repo.return_value = mock_repo
        github.rate_limiting = (4999, 5000)
        github.rate_limiting_resettime = int(CLOSED.timestamp())
        yield GitHubMiner("token")


@pytest.fixture
def reference():
    return RepositoryReference(owner="aws-samples", repo="anthropic-on-aws")


@pytest.mark.asyncio
async def test_mine_repository_success(miner, reference, mock_repo):
    """Test that all five listings are converted."""
    repo_data = await miner.mine_repository(reference)

    assert isinstance(repo_data, RepositoryData)
    assert repo_data.repository_name == "aws-samples/anthropic-on-aws"
    miner.github.get_repo.assert_called_once_with("aws-samples/anthropic-on-aws")
    mock_repo.get_issues.assert_called_once_with(state="all")
    mock_repo.get_pulls.assert_called_once_with(state="all")

    assert repo_data.metadata.stars == 100
    assert repo_data.metadata.watchers == 8
    assert repo_data.metadata.license_name == "MIT No Attribution"
    assert repo_data.metadata.topics == ["bedrock"]
    assert [issue.is_pull_request for issue in repo_data.issues] == [
        False,
        False,
        True,
    ]
    assert len(repo_data.pull_requests) == 2
    assert repo_data.pull_requests[0].merged_at == CLOSED
    assert repo_data.contributors_count == 3
    assert repo_data.latest_release.name == "v2.0"
    assert repo_data.weekly_commits == [3, 0, 6]


@pytest.mark.asyncio
async def test_mine_repository_without_release(miner, reference, mock_repo):
    """A repository without releases is not an error."""
    mock_repo.get_latest_release.side_effect = UnknownObjectException(404, {}, {})

    repo_data = await miner.mine_repository(reference)

    assert repo_data.latest_release is None


@pytest.mark.asyncio
async def test_mine_repository_statistics_pending(miner, reference, mock_repo):
    """Commit statistics still being computed are treated as missing."""
    mock_repo.get_stats_commit_activity.return_value = None

    repo_data = await miner.mine_repository(reference)

    assert repo_data.weekly_commits is None


@pytest.mark.asyncio
async def test_mine_repository_malformed_statistics(miner, reference, mock_repo):
    """Malformed commit buckets do not fail the repository."""
    mock_repo.get_stats_commit_activity.return_value = [Mock(total="many")]

    repo_data = await miner.mine_repository(reference)

    assert repo_data.weekly_commits is None


@pytest.mark.asyncio
async def test_mine_repository_missing_repository(miner, reference):
    """Errors from the metadata call are wrapped with the repository name."""
    miner.github.get_repo.side_effect = UnknownObjectException(404, {}, {})

    with pytest.raises(RepositoryFetchError) as exc_info:
        await miner.mine_repository(reference)

    assert exc_info.value.repository == "aws-samples/anthropic-on-aws"


@pytest.mark.asyncio
async def test_mine_repository_listing_failure(miner, reference, mock_repo):
    """An error in any of the concurrent calls fails the whole repository."""
    mock_repo.get_pulls.side_effect = GithubException(403, {"message": "rate limited"}, {})

    with pytest.raises(RepositoryFetchError):
        await miner.mine_repository(reference)


def test_authenticate_success(miner):
    """Test authentication returns the login."""
    miner.github.get_user.return_value.login = "octocat"

    assert miner.authenticate() == "octocat"


def test_authenticate_bad_credentials(miner):
    """Bad credentials surface as AuthError."""
    miner.github.get_user.side_effect = BadCredentialsException(401, {}, {})

    with pytest.raises(AuthError):
        miner.authenticate()


def test_authenticate_unreachable_api(miner):
    """Transport failures while authenticating surface as AuthError."""
    miner.github.get_user.side_effect = requests.exceptions.ConnectionError("dns")

    with pytest.raises(AuthError):
        miner.authenticate()


def test_collect_listing_stops_when_cancelled(miner):
    """A listing stops paging once another call for the repository failed."""
    cancelled = threading.Event()
    cancelled.set()
    pages = iter(range(1000))

    items = miner._collect_listing(pages, lambda n: n, cancelled)

    assert items == []
    # Only the item in hand when the flag was seen is consumed
    assert next(pages) == 1


def test_guarded_call_flags_failure():
    """A failing call sets the repository's cancellation flag and re-raises."""
    cancelled = threading.Event()

    with pytest.raises(GithubException):
        GitHubMiner._guarded(
            cancelled, Mock(side_effect=GithubException(500, {}, {}))
        )

    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_mine_repository_failure_stops_other_listings(miner, reference, mock_repo):
    """When one call fails, the remaining listings stop paging."""
    fetched = []

    def slow_issues(state):
        for number in range(1000):
            if number == 1:
                time.sleep(0.2)
            fetched.append(number)
            yield make_issue(number, "open")

    mock_repo.get_issues.side_effect = slow_issues
    mock_repo.get_pulls.side_effect = GithubException(403, {"message": "rate limited"}, {})

    with pytest.raises(RepositoryFetchError):
        await miner.mine_repository(reference)

    assert len(fetched) < 1000


def test_enterprise_base_url():
    """The API base URL is passed through when configured."""
    with patch("miners.github_miner.Github") as github_cls:
        GitHubMiner("token", base_url="https://github.example.com/api/v3")

    assert github_cls.call_args.kwargs["base_url"] == "https://github.example.com/api/v3"
