"""
Unit tests for GitHubPlatform.

Tests cover pull request resolution, reviewer assignment, comment
reporting and clearing, retry classification, GraphQL policy data
lookups, storage prefixes and modifier content.
"""

import json
from unittest.mock import MagicMock, call

import pytest
import requests
import responses
from github import Auth, GithubException

from guardian.config import Settings
from guardian.errors import (
    ConfigurationError,
    GitHubError,
    MultiError,
    NoPullRequestsError,
    RetryExhaustedError,
    ReviewerAssignmentError,
)
from guardian.platform.github import GitHubPlatform, _graphql_url, build_auth
from guardian.platform.messages import COMMENT_PREFIX
from guardian.platform.models import (
    AssignReviewersInput,
    EntrypointsSummaryParams,
    ListReportsOptions,
    Status,
    StatusParams,
)

GRAPHQL_URL = "https://api.github.com/graphql"


def _comment(comment_id: int, body: str) -> MagicMock:
    return MagicMock(id=comment_id, body=body)


def _pull(number: int, body: str = "") -> MagicMock:
    return MagicMock(number=number, body=body)


def _job(name: str, html_url: str) -> MagicMock:
    job = MagicMock(html_url=html_url)
    job.name = name
    return job


def _with(settings: Settings, **update: object) -> Settings:
    return settings.model_copy(update=update)


@pytest.fixture
def platform(
    github_settings: Settings,
    mock_github_client: MagicMock,
    graphql_session: requests.Session,
) -> GitHubPlatform:
    """Provide a GitHubPlatform wired to the mocked client."""
    return GitHubPlatform(github_settings, client=mock_github_client, session=graphql_session)


class TestBuildAuth:
    """Tests for credential selection."""

    def test_token_wins(self, github_settings: Settings) -> None:
        """Test a token is used when present."""
        auth = build_auth(github_settings)
        assert isinstance(auth, Auth.Token)
        assert auth.token == "ghp_test_token"

    def test_missing_credentials(self, github_settings: Settings) -> None:
        """Test missing token and App credentials is a configuration error."""
        settings = _with(github_settings, github_token="", github_app_id="123")

        with pytest.raises(ConfigurationError) as exc_info:
            build_auth(settings)

        assert "installation id" in str(exc_info.value.reason)
        assert "private key" in str(exc_info.value.reason)
        assert "app id" not in str(exc_info.value.reason)

    @pytest.mark.parametrize(
        ("api_url", "expected"),
        [
            ("https://api.github.com", "https://api.github.com/graphql"),
            ("https://ghes.example.com/api/v3", "https://ghes.example.com/api/graphql"),
            ("https://ghes.example.com/api/v3/", "https://ghes.example.com/api/graphql"),
        ],
    )
    def test_graphql_url(self, api_url: str, expected: str) -> None:
        """Test the GraphQL endpoint is derived from the REST endpoint."""
        assert _graphql_url(api_url) == expected


class TestPullRequestResolution:
    """Tests for resolving the pull request from a commit SHA."""

    def test_configured_number_is_used(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test no lookup happens when the number is configured."""
        assert platform.pull_request_number() == 42
        mock_repo.get_commit.assert_not_called()

    def test_first_pull_request_is_memoised(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test the first pull request wins and is looked up once."""
        mock_repo.get_commit.return_value.get_pulls.return_value.get_page.return_value = [
            _pull(7),
            _pull(8),
        ]
        platform = GitHubPlatform(
            _with(github_settings, github_pull_request_number=0),
            client=mock_github_client,
            session=MagicMock(),
        )

        assert platform.pull_request_number() == 7
        assert platform.pull_request_number() == 7
        mock_repo.get_commit.assert_called_once_with("abc123")

    def test_no_pull_requests(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test a commit without pull requests is a terminal error."""
        mock_repo.get_commit.return_value.get_pulls.return_value.get_page.return_value = []
        platform = GitHubPlatform(
            _with(github_settings, github_pull_request_number=0),
            client=mock_github_client,
            session=MagicMock(),
        )

        with pytest.raises(NoPullRequestsError) as exc_info:
            platform.report_status(Status.SUCCESS, StatusParams())

        assert str(exc_info.value) == "no pull requests found for commit sha: abc123"
        mock_repo.get_issue.assert_not_called()

    def test_unknown_commit_means_no_pull_requests(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a 404 from the commit lookup yields an empty list."""
        mock_repo.get_commit.side_effect = GithubException(404, {"message": "Not Found"}, {})

        assert platform.get_pull_requests_for_commit("deadbeef") == []


class TestAssignReviewers:
    """Tests for GitHubPlatform.assign_reviewers."""

    def test_one_request_per_principal_in_order(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test users then teams are requested one at a time, in input order."""
        pull = mock_repo.get_pull.return_value

        result = platform.assign_reviewers(
            AssignReviewersInput(users=("alice", "bob"), teams=("team1", "team2"))
        )

        assert pull.create_review_request.call_args_list == [
            call(reviewers=["alice"]),
            call(reviewers=["bob"]),
            call(team_reviewers=["team1"]),
            call(team_reviewers=["team2"]),
        ]
        assert result.users == ["alice", "bob"]
        assert result.teams == ["team1", "team2"]
        mock_repo.get_pull.assert_called_with(42)

    def test_partial_failure_keeps_successes(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a failing team is dropped while users succeed."""
        pull = mock_repo.get_pull.return_value
        pull.create_review_request.side_effect = [
            None,
            None,
            GithubException(422, {"message": "Reviews may only be requested from collaborators"}, {}),
        ]

        result = platform.assign_reviewers(
            AssignReviewersInput(users=("alice", "bob"), teams=("team1",))
        )

        assert result.users == ["alice", "bob"]
        assert result.teams is None
        assert pull.create_review_request.call_args_list == [
            call(reviewers=["alice"]),
            call(reviewers=["bob"]),
            call(team_reviewers=["team1"]),
        ]

    def test_only_teams(self, platform: GitHubPlatform, mock_repo: MagicMock) -> None:
        """Test teams alone are requested and users stay None."""
        result = platform.assign_reviewers(AssignReviewersInput(teams=("team1",)))

        assert result.users is None
        assert result.teams == ["team1"]
        mock_repo.get_pull.return_value.create_review_request.assert_called_once_with(
            team_reviewers=["team1"]
        )

    def test_all_failures_raise(self, platform: GitHubPlatform, mock_repo: MagicMock) -> None:
        """Test an error is raised when nobody could be assigned."""
        mock_repo.get_pull.return_value.create_review_request.side_effect = GithubException(
            403, {"message": "Forbidden"}, {}
        )

        with pytest.raises(ReviewerAssignmentError) as exc_info:
            platform.assign_reviewers(AssignReviewersInput(users=("alice",), teams=("team1",)))

        assert str(exc_info.value) == "failed to assign all requested reviewers to pull request"

    def test_empty_input_makes_no_calls(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test empty input returns an empty result without remote calls."""
        result = platform.assign_reviewers(AssignReviewersInput())

        assert result.users is None
        assert result.teams is None
        mock_repo.get_pull.assert_not_called()

    def test_transient_failure_is_retried(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a 502 is retried within a single principal's request."""
        pull = mock_repo.get_pull.return_value
        pull.create_review_request.side_effect = [GithubException(502, {}, {}), None]

        result = platform.assign_reviewers(AssignReviewersInput(users=("alice",)))

        assert result.users == ["alice"]
        assert pull.create_review_request.call_count == 2


class TestReports:
    """Tests for reporting, listing, updating and clearing comments."""

    def test_report_status_creates_comment(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test the status comment is posted with the run logs link."""
        platform.report_status(Status.SUCCESS, StatusParams(operation="plan", dir="tf/proj"))

        mock_repo.get_issue.assert_called_with(42)
        body = mock_repo.get_issue.return_value.create_comment.call_args.args[0]
        assert body.startswith(COMMENT_PREFIX)
        assert "**`PLAN`**" in body
        assert "[[logs](https://github.com/test-org/infra/actions/runs/100/attempts/1)]" in body

    def test_report_status_uses_job_logs_url(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test the matching job's URL replaces the run URL."""
        mock_repo.get_workflow_run.return_value.jobs.return_value = [
            _job("apply", "https://github.com/test-org/infra/actions/runs/100/job/1"),
            _job("plan", "https://github.com/test-org/infra/actions/runs/100/job/2"),
        ]
        platform = GitHubPlatform(
            _with(github_settings, github_job="plan"),
            client=mock_github_client,
            session=MagicMock(),
        )

        platform.report_status(Status.SUCCESS, StatusParams())

        body = mock_repo.get_issue.return_value.create_comment.call_args.args[0]
        assert "(https://github.com/test-org/infra/actions/runs/100/job/2)" in body
        mock_repo.get_workflow_run.assert_called_once_with(100)

    def test_job_lookup_failure_falls_back_to_run_url(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test a missing job leaves the run URL in place."""
        mock_repo.get_workflow_run.return_value.jobs.return_value = [
            _job("apply", "https://github.com/test-org/infra/actions/runs/100/job/1"),
        ]
        platform = GitHubPlatform(
            _with(github_settings, github_job="plan"),
            client=mock_github_client,
            session=MagicMock(),
        )

        assert platform.log_url == "https://github.com/test-org/infra/actions/runs/100/attempts/1"

    def test_report_entrypoints_summary(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test the summary comment lists the directories."""
        platform.report_entrypoints_summary(
            EntrypointsSummaryParams(message="Plan will run for:", dirs=("a", "b"))
        )

        body = mock_repo.get_issue.return_value.create_comment.call_args.args[0]
        assert body.endswith("**Directories**\na\nb")

    def test_missing_identity_is_aggregated(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test every missing field is reported before any remote call."""
        settings = _with(
            github_settings,
            github_owner="",
            github_repo="",
            github_pull_request_number=0,
            github_sha="",
        )
        platform = GitHubPlatform(settings, client=mock_github_client, session=MagicMock())

        with pytest.raises(MultiError) as exc_info:
            platform.report_status(Status.SUCCESS, StatusParams())

        assert exc_info.value.errors == [
            "github owner is required",
            "github repo is required",
            "one of github pull request number or github sha are required",
        ]
        mock_repo.get_issue.assert_not_called()

    def test_ignored_status_is_not_retried(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a 404 on comment creation fails immediately."""
        create = mock_repo.get_issue.return_value.create_comment
        create.side_effect = GithubException(404, {"message": "Not Found"}, {})

        with pytest.raises(GitHubError) as exc_info:
            platform.report_status(Status.SUCCESS, StatusParams())

        assert exc_info.value.status_code == 404
        create.assert_called_once()

    def test_server_error_is_retried(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a 502 on comment creation is retried."""
        create = mock_repo.get_issue.return_value.create_comment
        create.side_effect = [GithubException(502, {}, {}), MagicMock()]

        platform.report_status(Status.SUCCESS, StatusParams())

        assert create.call_count == 2

    def test_retries_are_exhausted(self, platform: GitHubPlatform, mock_repo: MagicMock) -> None:
        """Test persistent server errors stop after the retry limit."""
        create = mock_repo.get_issue.return_value.create_comment
        create.side_effect = GithubException(500, {}, {})

        with pytest.raises(RetryExhaustedError):
            platform.report_status(Status.SUCCESS, StatusParams())

        assert create.call_count == 4

    def test_network_error_is_retried(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test connection errors are retried."""
        create = mock_repo.get_issue.return_value.create_comment
        create.side_effect = [requests.ConnectionError("reset"), MagicMock()]

        platform.report_status(Status.SUCCESS, StatusParams())

        assert create.call_count == 2

    def test_list_reports_full_page_has_next(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a full page points at the following page."""
        comments = mock_repo.get_issue.return_value.get_comments.return_value
        comments.__getitem__.return_value = [_comment(i, f"c{i}") for i in range(100)]

        result = platform.list_reports(ListReportsOptions(page=2))

        comments.__getitem__.assert_called_once_with(slice(100, 200))
        assert len(result.reports) == 100
        assert result.pagination is not None
        assert result.pagination.next_page == 3

    def test_list_reports_short_page_is_last(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a short page ends the listing."""
        comments = mock_repo.get_issue.return_value.get_comments.return_value
        comments.__getitem__.return_value = [_comment(1, "a"), _comment(2, None)]

        result = platform.list_reports(ListReportsOptions())

        assert [r.id for r in result.reports] == [1, 2]
        assert result.reports[1].body == ""
        assert result.pagination is None

    def test_list_reports_honours_page_size(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test a smaller page size picks the matching slice and pages on when full."""
        comments = mock_repo.get_issue.return_value.get_comments.return_value
        comments.__getitem__.return_value = [_comment(i, f"c{i}") for i in range(11, 21)]

        result = platform.list_reports(ListReportsOptions(page=2, per_page=10))

        comments.__getitem__.assert_called_once_with(slice(10, 20))
        assert [r.id for r in result.reports] == list(range(11, 21))
        assert result.pagination is not None
        assert result.pagination.next_page == 3

    def test_clear_reports_deletes_only_prefixed(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test only Guardian's comments are deleted."""
        issue = mock_repo.get_issue.return_value
        issue.get_comments.return_value.__getitem__.return_value = [
            _comment(1, f"{COMMENT_PREFIX} **`PLAN`**"),
            _comment(2, "LGTM"),
            _comment(3, f"{COMMENT_PREFIX} **`APPLY`**"),
        ]

        platform.clear_reports()

        assert issue.get_comment.call_args_list == [call(1), call(3)]
        assert issue.get_comment.return_value.delete.call_count == 2

    def test_update_report(self, platform: GitHubPlatform, mock_repo: MagicMock) -> None:
        """Test a comment body is replaced."""
        platform.update_report(5, "new body")

        issue = mock_repo.get_issue.return_value
        issue.get_comment.assert_called_once_with(5)
        issue.get_comment.return_value.edit.assert_called_once_with("new body")


class TestPolicyData:
    """Tests for approvers, permissions, team memberships and policy data."""

    @responses.activate
    def test_latest_approvers_keeps_approvals(self, platform: GitHubPlatform) -> None:
        """Test only approving users are returned, once each."""
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json={
                "data": {
                    "repository": {
                        "pullRequest": {
                            "latestReviews": {
                                "nodes": [
                                    {"author": {"login": "alice"}, "state": "APPROVED"},
                                    {"author": {"login": "bob"}, "state": "COMMENTED"},
                                    {"author": {"login": "carol"}, "state": "APPROVED"},
                                    {"author": {"login": "alice"}, "state": "APPROVED"},
                                ]
                            }
                        }
                    }
                }
            },
        )

        result = platform.get_latest_approvers()

        assert result.users == ["alice", "carol"]
        assert result.teams == []
        variables = json.loads(responses.calls[0].request.body)["variables"]
        assert variables == {"owner": "test-org", "repo": "infra", "number": 42}

    @responses.activate
    def test_latest_approvers_with_teams(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        graphql_session: requests.Session,
    ) -> None:
        """Test approver teams are resolved with exact login matches."""
        platform = GitHubPlatform(
            _with(github_settings, include_teams=True),
            client=mock_github_client,
            session=graphql_session,
        )
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json={
                "data": {
                    "repository": {
                        "pullRequest": {
                            "latestReviews": {
                                "nodes": [
                                    {"author": {"login": "alice"}, "state": "APPROVED"},
                                    {"author": {"login": "carol"}, "state": "APPROVED"},
                                ]
                            }
                        }
                    }
                }
            },
        )
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json=_teams_payload({"admins": ["alice"], "devs": ["alice2"]}),
        )
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json=_teams_payload({"admins": ["carol"], "sre": ["carol"]}),
        )

        result = platform.get_latest_approvers()

        assert result.users == ["alice", "carol"]
        assert result.teams == ["admins", "sre"]
        assert len(responses.calls) == 3

    @responses.activate
    def test_graphql_errors_raise(self, platform: GitHubPlatform) -> None:
        """Test GraphQL errors in a 200 response are terminal."""
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json={"errors": [{"message": "Could not resolve to a PullRequest"}]},
        )

        with pytest.raises(GitHubError) as exc_info:
            platform.get_latest_approvers()

        assert "Could not resolve to a PullRequest" in str(exc_info.value)
        assert len(responses.calls) == 1

    @responses.activate
    def test_latest_approvers_null_reviews(self, platform: GitHubPlatform) -> None:
        """Test a null latestReviews field yields no approvers."""
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json={"data": {"repository": {"pullRequest": {"latestReviews": None}}}},
        )

        result = platform.get_latest_approvers()

        assert result.users == []
        assert result.teams == []

    @responses.activate
    def test_graphql_invalid_json_raises(self, platform: GitHubPlatform) -> None:
        """Test a non-JSON success body is a terminal GitHubError."""
        responses.add(responses.POST, GRAPHQL_URL, body="<html>oops</html>", status=200)

        with pytest.raises(GitHubError) as exc_info:
            platform.get_latest_approvers()

        assert "invalid JSON response" in str(exc_info.value)
        assert exc_info.value.status_code == 200
        assert len(responses.calls) == 1

    @responses.activate
    def test_graphql_server_error_is_retried(self, platform: GitHubPlatform) -> None:
        """Test a 502 from the GraphQL endpoint is retried."""
        responses.add(responses.POST, GRAPHQL_URL, status=502)
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json=_teams_payload({"admins": ["octocat"]}),
        )

        assert platform.get_user_team_memberships("octocat") == ["admins"]
        assert len(responses.calls) == 2

    @responses.activate
    def test_graphql_forbidden_is_terminal(self, platform: GitHubPlatform) -> None:
        """Test a 403 from the GraphQL endpoint is not retried."""
        responses.add(responses.POST, GRAPHQL_URL, status=403)

        with pytest.raises(GitHubError) as exc_info:
            platform.get_user_team_memberships("octocat")

        assert exc_info.value.status_code == 403
        assert len(responses.calls) == 1

    def test_team_memberships_require_username(self, platform: GitHubPlatform) -> None:
        """Test an empty username is rejected."""
        with pytest.raises(ConfigurationError, match="username is required"):
            platform.get_user_team_memberships("")

    def test_repo_permissions(self, platform: GitHubPlatform, mock_repo: MagicMock) -> None:
        """Test the actor's permission is returned."""
        mock_repo.get_collaborator_permission.return_value = "write"

        assert platform.get_user_repo_permissions() == "write"
        mock_repo.get_collaborator_permission.assert_called_once_with("octocat")

    def test_repo_permissions_require_actor(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
    ) -> None:
        """Test a missing actor is rejected."""
        platform = GitHubPlatform(
            _with(github_settings, github_actor=""),
            client=mock_github_client,
            session=MagicMock(),
        )

        with pytest.raises(ConfigurationError, match="github-actor is required"):
            platform.get_user_repo_permissions()

    @responses.activate
    def test_policy_data_for_pull_request(
        self, platform: GitHubPlatform, mock_repo: MagicMock
    ) -> None:
        """Test policy data includes the actor and the approvers."""
        mock_repo.get_collaborator_permission.return_value = "admin"
        responses.add(
            responses.POST,
            GRAPHQL_URL,
            json={
                "data": {
                    "repository": {
                        "pullRequest": {
                            "latestReviews": {
                                "nodes": [{"author": {"login": "alice"}, "state": "APPROVED"}]
                            }
                        }
                    }
                }
            },
        )

        result = platform.get_policy_data()

        assert result.gitlab is None
        assert result.mock is None
        assert result.github is not None
        assert result.github.actor.username == "octocat"
        assert result.github.actor.access_level == "admin"
        assert result.github.actor.teams is None
        assert result.github.pull_request_approvers is not None
        assert result.github.pull_request_approvers.users == ["alice"]

    def test_policy_data_without_pull_request(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test approvers are skipped when no pull request number is configured."""
        mock_repo.get_collaborator_permission.return_value = "read"
        session = MagicMock()
        platform = GitHubPlatform(
            _with(github_settings, github_pull_request_number=0),
            client=mock_github_client,
            session=session,
        )

        result = platform.get_policy_data()

        assert result.github is not None
        assert result.github.pull_request_approvers is None
        session.post.assert_not_called()


class TestWorkflowMetadata:
    """Tests for modifier content and storage prefixes."""

    @pytest.mark.parametrize("event", ["pull_request", "pull_request_target"])
    def test_modifier_content_from_event(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        event: str,
    ) -> None:
        """Test pull request events use the event's body."""
        platform = GitHubPlatform(
            _with(github_settings, github_event_name=event, github_pull_request_body="body"),
            client=mock_github_client,
            session=MagicMock(),
        )

        assert platform.modifier_content() == "body"

    def test_modifier_content_for_push(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test push events concatenate every pull request body."""
        mock_repo.get_commit.return_value.get_pulls.return_value.get_page.return_value = [
            _pull(1, "first "),
            _pull(2, "second"),
        ]
        platform = GitHubPlatform(
            _with(github_settings, github_event_name="push"),
            client=mock_github_client,
            session=MagicMock(),
        )

        assert platform.modifier_content() == "first second"

    def test_modifier_content_other_event(self, platform: GitHubPlatform) -> None:
        """Test other events have no modifier content."""
        assert platform.modifier_content() == ""

    def test_storage_prefix_for_pull_request(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
    ) -> None:
        """Test pull request events use the configured number."""
        platform = GitHubPlatform(
            _with(github_settings, github_event_name="pull_request"),
            client=mock_github_client,
            session=MagicMock(),
        )

        assert platform.storage_prefix() == "guardian-plans/test-org/infra/42"

    def test_storage_prefix_requires_identity(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
    ) -> None:
        """Test pull request events validate owner, repo and number."""
        platform = GitHubPlatform(
            _with(
                github_settings,
                github_event_name="pull_request",
                github_owner="",
                github_pull_request_number=0,
            ),
            client=mock_github_client,
            session=MagicMock(),
        )

        with pytest.raises(MultiError) as exc_info:
            platform.storage_prefix()

        assert len(exc_info.value.errors) == 2

    def test_storage_prefix_for_push(
        self,
        github_settings: Settings,
        mock_github_client: MagicMock,
        mock_repo: MagicMock,
    ) -> None:
        """Test push events resolve the pull request from the commit."""
        mock_repo.get_commit.return_value.get_pulls.return_value.get_page.return_value = [
            _pull(9)
        ]
        platform = GitHubPlatform(
            _with(github_settings, github_event_name="push"),
            client=mock_github_client,
            session=MagicMock(),
        )

        assert platform.storage_prefix() == "guardian-plans/test-org/infra/9"

    def test_storage_prefix_other_event(self, platform: GitHubPlatform) -> None:
        """Test other events have no storage prefix."""
        assert platform.storage_prefix() == ""


def _teams_payload(teams: dict[str, list[str]]) -> dict[str, object]:
    return {
        "data": {
            "organization": {
                "teams": {
                    "nodes": [
                        {
                            "name": name,
                            "members": {"nodes": [{"login": login} for login in members]},
                        }
                        for name, members in teams.items()
                    ]
                }
            }
        }
    }
