"""
Shared pytest fixtures for Guardian tests.

This module provides common test fixtures used across the unit tests.
Fixtures include a clean environment, settings for each platform, mocked
PyGithub and python-gitlab clients, and retry tuning without delays.

Usage:
    def test_something(github_settings, mock_github_client):
        platform = GitHubPlatform(github_settings, client=mock_github_client)
"""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
import requests
from _pytest.monkeypatch import MonkeyPatch

from guardian.config import Settings, get_settings

# Environment variables that would leak the runner's CI context into tests
_CI_ENV_VARS = (
    "GUARDIAN_PLATFORM",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "GITHUB_TOKEN",
    "GUARDIAN_GITHUB_TOKEN",
    "GITHUB_REPOSITORY",
    "GITHUB_EVENT_NAME",
    "GITHUB_EVENT_PATH",
    "GITHUB_SHA",
    "GITHUB_ACTOR",
    "GITHUB_JOB",
    "GITHUB_RUN_ID",
    "GITHUB_RUN_ATTEMPT",
    "GITHUB_SERVER_URL",
    "GITHUB_API_URL",
    "GITLAB_TOKEN",
    "GUARDIAN_GITLAB_TOKEN",
    "CI_JOB_TOKEN",
    "CI_JOB_URL",
    "CI_PROJECT_ID",
    "CI_MERGE_REQUEST_IID",
    "CI_MERGE_REQUEST_ID",
    "CI_SERVER_URL",
    "CI_SERVER_HOST",
    "CI_API_V4_URL",
    "LOG_LEVEL",
    "LOG_FORMAT",
)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(
    monkeypatch: MonkeyPatch,
    tmp_path_factory: pytest.TempPathFactory,
) -> Generator[None, None, None]:
    """
    Remove CI variables from the environment and reset cached settings.

    Tests run from an empty directory so that a developer's .env file is
    never picked up.
    """
    for name in _CI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def github_settings() -> Settings:
    """
    Provide Settings for a GitHub pull request run.

    Retry delays are zero so retry tests do not sleep.

    Returns:
        Settings with owner, repo, pull request and actor set
    """
    return Settings(
        platform="github",
        github_token="ghp_test_token",
        github_owner="test-org",
        github_repo="infra",
        github_pull_request_number=42,
        github_sha="abc123",
        github_actor="octocat",
        github_server_url="https://github.com",
        github_run_id=100,
        github_run_attempt=1,
        initial_retry_delay=0,
        max_retry_delay=0,
    )


@pytest.fixture
def gitlab_settings() -> Settings:
    """
    Provide Settings for a GitLab merge request run.

    Returns:
        Settings with project, merge request and token set
    """
    return Settings(
        platform="gitlab",
        gitlab_token="glpat-test",
        gitlab_base_url="https://gitlab.example.com",
        gitlab_project_id=7,
        gitlab_merge_request_iid=3,
        initial_retry_delay=0,
        max_retry_delay=0,
    )


# =============================================================================
# Client Fixtures
# =============================================================================


@pytest.fixture
def mock_repo() -> MagicMock:
    """Provide a mocked PyGithub repository."""
    return MagicMock(name="Repository")


@pytest.fixture
def mock_github_client(mock_repo: MagicMock) -> MagicMock:
    """
    Provide a mocked PyGithub client returning mock_repo.

    Returns:
        MagicMock standing in for github.Github
    """
    client = MagicMock(name="Github")
    client.get_repo.return_value = mock_repo
    return client


@pytest.fixture
def graphql_session() -> requests.Session:
    """Provide a plain requests session; tests intercept it with responses."""
    return requests.Session()


@pytest.fixture
def mock_merge_request() -> MagicMock:
    """Provide a mocked python-gitlab merge request."""
    return MagicMock(name="ProjectMergeRequest")


@pytest.fixture
def mock_gitlab_client(mock_merge_request: MagicMock) -> MagicMock:
    """
    Provide a mocked python-gitlab client returning mock_merge_request.

    Returns:
        MagicMock standing in for gitlab.Gitlab
    """
    client = MagicMock(name="Gitlab")
    client.url = "https://gitlab.example.com"
    client.projects.get.return_value.mergerequests.get.return_value = mock_merge_request
    return client
