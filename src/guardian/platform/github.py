"""
GitHub platform integration.

REST calls go through PyGithub; the latest-review and team-membership
lookups use the GraphQL API through a requests session. PyGithub's own
retry handling is disabled so that every remote call is governed by
Guardian's RetryPolicy and its status-code classification.

Usage:
    from guardian.config import get_settings
    from guardian.platform.github import GitHubPlatform

    platform = GitHubPlatform(get_settings())
    platform.clear_reports()
    platform.report_status(Status.SUCCESS, StatusParams(operation="plan", dir="tf/proj"))
"""

import threading
from collections.abc import Callable
from typing import Any, TypeVar

import requests
from github import Auth, Github, GithubException
from github.PullRequest import PullRequest
from github.Repository import Repository

from guardian.config import Settings
from guardian.errors import (
    ConfigurationError,
    ErrorList,
    GitHubError,
    GuardianError,
    NoPullRequestsError,
    PlatformError,
    RetryableError,
    RetryExhaustedError,
    ReviewerAssignmentError,
)
from guardian.logging_config import get_logger, log_with_context
from guardian.platform.base import CLEAR_REPORTS_PAGE_SIZE, Platform
from guardian.platform.messages import (
    GITHUB_MAX_COMMENT_LENGTH,
    entrypoints_summary_message,
    status_message,
)
from guardian.platform.models import (
    AssignReviewersInput,
    AssignReviewersResult,
    EntrypointsSummaryParams,
    GetLatestApproversResult,
    GetPolicyDataResult,
    GitHubActorData,
    GitHubPolicyData,
    ListReportsOptions,
    ListReportsResult,
    Pagination,
    Report,
    Status,
    StatusParams,
)
from guardian.retry import RetryPolicy, classify_status

logger = get_logger(__name__)

T = TypeVar("T")

# Status codes that are never retried. Issue and comment endpoints document
# a wider set of client errors than the pull request endpoints.
ISSUE_IGNORED_STATUS_CODES = frozenset({400, 401, 403, 404, 422})
PULL_REQUEST_IGNORED_STATUS_CODES = frozenset({403, 422})

PULL_REQUEST_EVENTS = ("pull_request", "pull_request_target")
PUSH_EVENTS = ("push",)

GRAPHQL_TIMEOUT_SECONDS = 30

LATEST_REVIEWS_QUERY = """
query($owner: String!, $repo: String!, $number: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $number) {
      latestReviews(first: 100) {
        nodes {
          author { login }
          state
        }
      }
    }
  }
}
"""

# members(query:) matches substrings of logins, so results must be filtered
# for exact matches. teams(userLogins:) would miss nested team memberships.
ORGANIZATION_TEAMS_FOR_USER_QUERY = """
query($owner: String!, $username: String!) {
  organization(login: $owner) {
    teams(first: 100) {
      nodes {
        name
        members(first: 100, query: $username) {
          nodes { login }
        }
      }
    }
  }
}
"""


class _TokenAuth(requests.auth.AuthBase):
    """Authorize requests with whatever token the PyGithub auth holds."""

    def __init__(self, auth: Auth.Token | Auth.AppInstallationAuth) -> None:
        self._auth = auth

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r.headers["Authorization"] = f"Bearer {self._auth.token}"
        return r


def build_auth(settings: Settings) -> Auth.Token | Auth.AppInstallationAuth:
    """
    Pick the GitHub credential from settings.

    A token wins over GitHub App credentials. The App installation token
    exchange is handled by PyGithub.

    Args:
        settings: Guardian settings

    Returns:
        PyGithub auth object

    Raises:
        ConfigurationError: If neither a token nor complete App credentials are set
    """
    if settings.github_token:
        return Auth.Token(settings.github_token)

    merr = ErrorList()
    if not settings.github_app_id:
        merr.add("github app id is required when no github token is set")
    if not settings.github_app_installation_id:
        merr.add("github app installation id is required when no github token is set")
    if not settings.github_app_private_key_pem:
        merr.add("github app private key is required when no github token is set")
    if merr:
        raise ConfigurationError(
            "failed to create github credentials",
            config_key="GITHUB_TOKEN",
            reason="; ".join(merr.errors),
        )

    try:
        app_auth = Auth.AppAuth(int(settings.github_app_id), settings.github_app_private_key_pem)
        return app_auth.get_installation_auth(int(settings.github_app_installation_id))
    except ValueError as e:
        raise ConfigurationError(
            f"invalid github app credentials: {e}",
            config_key="GITHUB_APP_ID",
            reason=str(e),
        ) from e


def _graphql_url(api_url: str) -> str:
    api_url = api_url.rstrip("/")
    # GitHub Enterprise Server serves REST at /api/v3 and GraphQL at /api/graphql
    if api_url.endswith("/v3"):
        return api_url.removesuffix("/v3") + "/graphql"
    return f"{api_url}/graphql"


class GitHubPlatform(Platform):
    """
    Platform implementation for GitHub pull requests.

    Attributes:
        settings: Guardian settings holding the GitHub identity
        client: PyGithub client
        session: requests session used for GraphQL queries
    """

    def __init__(
        self,
        settings: Settings,
        client: Github | None = None,
        session: requests.Session | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """
        Initialize the GitHub platform.

        Args:
            settings: Guardian settings
            client: Pre-built PyGithub client (built from settings if None)
            session: Pre-built requests session for GraphQL (built if None)
            cancel_event: Event that aborts in-flight retries when set

        Raises:
            ConfigurationError: If no usable credentials are configured
        """
        self.settings = settings
        self._retry = RetryPolicy(settings.retry_config(), cancel_event)

        if client is None or session is None:
            auth = build_auth(settings)
            if client is None:
                client = Github(
                    auth=auth,
                    base_url=settings.github_api_url,
                    per_page=CLEAR_REPORTS_PAGE_SIZE,
                    retry=None,
                )
            if session is None:
                session = requests.Session()
                session.auth = _TokenAuth(auth)

        self.client: Github = client
        self.session: requests.Session = session
        self._graphql_url = _graphql_url(settings.github_api_url)

        self._pull_request_number: int = settings.github_pull_request_number
        self._log_url: str | None = None

        log_with_context(
            logger,
            "debug",
            "Initialized GitHub platform",
            owner=settings.github_owner,
            repo=settings.github_repo,
            pull_request_number=self._pull_request_number,
        )

    # Remote call plumbing

    def _call(self, operation: str, ignored_codes: frozenset[int], fn: Callable[[], T]) -> T:
        def attempt() -> T:
            try:
                return fn()
            except GithubException as e:
                if classify_status(e.status, ignored_codes):
                    raise RetryableError(e) from e
                raise GitHubError(
                    f"failed to {operation}: {e}",
                    status_code=e.status,
                    operation=operation,
                ) from e
            except requests.RequestException as e:
                raise RetryableError(e) from e

        return self._retry.run(operation, attempt)

    def _graphql(self, operation: str, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        def attempt() -> dict[str, Any]:
            try:
                response = self.session.post(
                    self._graphql_url,
                    json={"query": query, "variables": variables},
                    timeout=GRAPHQL_TIMEOUT_SECONDS,
                )
            except requests.RequestException as e:
                raise RetryableError(e) from e

            if response.status_code >= 400:
                error = GitHubError(
                    f"failed to {operation}: HTTP {response.status_code}",
                    status_code=response.status_code,
                    operation=operation,
                )
                if classify_status(response.status_code, ISSUE_IGNORED_STATUS_CODES):
                    raise RetryableError(error)
                raise error

            try:
                payload: dict[str, Any] = response.json()
            except ValueError as e:
                raise GitHubError(
                    f"failed to {operation}: invalid JSON response",
                    status_code=response.status_code,
                    operation=operation,
                ) from e

            if payload.get("errors"):
                messages = "; ".join(str(err.get("message", err)) for err in payload["errors"])
                raise GitHubError(f"failed to {operation}: {messages}", operation=operation)

            data: dict[str, Any] = payload.get("data") or {}
            return data

        return self._retry.run(operation, attempt)

    def _repo(self) -> Repository:
        full_name = f"{self.settings.github_owner}/{self.settings.github_repo}"
        return self.client.get_repo(full_name, lazy=True)

    # Pull request resolution

    def get_pull_requests_for_commit(self, sha: str) -> list[PullRequest]:
        """
        List the pull requests associated with a commit.

        A 404 means the commit is not known to any pull request and yields
        an empty list.

        Args:
            sha: Commit SHA

        Returns:
            Pull requests in the order returned by the API
        """
        log_with_context(
            logger,
            "debug",
            "looking up pull request from commit sha",
            owner=self.settings.github_owner,
            repo=self.settings.github_repo,
            commit_sha=sha,
        )

        def call() -> list[PullRequest]:
            try:
                return list(self._repo().get_commit(sha).get_pulls().get_page(0))
            except GithubException as e:
                if e.status == 404:
                    return []
                raise

        return self._call("list pull requests for commit", PULL_REQUEST_IGNORED_STATUS_CODES, call)

    def _first_pull_request_for_commit(self, sha: str) -> PullRequest:
        pull_requests = self.get_pull_requests_for_commit(sha)
        if not pull_requests:
            raise NoPullRequestsError(sha)
        # The API does not document its ordering; the first entry is used.
        return pull_requests[0]

    def pull_request_number(self) -> int:
        """
        Return the pull request number, resolving it from the commit SHA if needed.

        Raises:
            NoPullRequestsError: If no pull request contains the commit
        """
        if self._pull_request_number <= 0:
            pull_request = self._first_pull_request_for_commit(self.settings.github_sha)
            self._pull_request_number = pull_request.number
            log_with_context(
                logger,
                "debug",
                "computed pull request number from commit sha",
                pull_request_number=self._pull_request_number,
            )
        return self._pull_request_number

    # Reviewers

    def _request_reviewers(self, number: int, **reviewers: list[str]) -> None:
        def call() -> None:
            self._repo().get_pull(number).create_review_request(**reviewers)

        self._call("request reviewers", PULL_REQUEST_IGNORED_STATUS_CODES, call)

    def assign_reviewers(self, inputs: AssignReviewersInput) -> AssignReviewersResult:
        """
        Assign users and teams as reviewers of the pull request.

        GitHub's review request API silently does nothing when existing
        pending reviewers are mixed with new ones, so every principal is
        requested on its own: users first, then teams, in input order.
        A failure for one principal is logged and skipped.

        Args:
            inputs: Users and teams to request

        Returns:
            The principals that were assigned

        Raises:
            ReviewerAssignmentError: If principals were requested and none succeeded
        """
        result = AssignReviewersResult()
        if not inputs.users and not inputs.teams:
            return result

        number = self.pull_request_number()

        for user in inputs.users:
            try:
                self._request_reviewers(number, reviewers=[user])
            except (PlatformError, RetryExhaustedError) as e:
                log_with_context(
                    logger,
                    "error",
                    "failed to assign reviewer for pull request",
                    user=user,
                    error=str(e),
                )
                continue
            result.users = [*(result.users or []), user]

        for team in inputs.teams:
            try:
                self._request_reviewers(number, team_reviewers=[team])
            except (PlatformError, RetryExhaustedError) as e:
                log_with_context(
                    logger,
                    "error",
                    "failed to assign reviewer for pull request",
                    team=team,
                    error=str(e),
                )
                continue
            result.teams = [*(result.teams or []), team]

        if not result.users and not result.teams:
            raise ReviewerAssignmentError(
                "failed to assign all requested reviewers to pull request"
            )

        return result

    # Policy data

    def get_latest_approvers(self) -> GetLatestApproversResult:
        """
        Return the users whose latest review is an approval.

        GitHub keeps one latest review per user, so a later request for
        changes hides an earlier approval. With include_teams set, the teams
        of every approver are returned as well.

        Returns:
            Approving users and, optionally, their teams; never None lists

        Raises:
            GitHubError: If a query fails
        """
        log_with_context(logger, "debug", "querying latest approvers")

        data = self._graphql(
            "query latest approvers",
            LATEST_REVIEWS_QUERY,
            {
                "owner": self.settings.github_owner,
                "repo": self.settings.github_repo,
                "number": self.pull_request_number(),
            },
        )
        pull_request = (data.get("repository") or {}).get("pullRequest") or {}
        latest_reviews = pull_request.get("latestReviews") or {}
        reviews: list[dict[str, Any]] = latest_reviews.get("nodes") or []

        result = GetLatestApproversResult(users=[], teams=[])
        for review in reviews:
            if review.get("state") != "APPROVED":
                continue
            login = (review.get("author") or {}).get("login")
            if login and login not in result.users:
                result.users.append(login)

        log_with_context(logger, "debug", "found latest approvers", users=result.users)

        if not self.settings.include_teams:
            log_with_context(logger, "debug", "skipped fetching team approvers")
            return result

        for username in result.users:
            for team in self.get_user_team_memberships(username):
                if team not in result.teams:
                    result.teams.append(team)

        log_with_context(logger, "debug", "found latest approver teams", teams=result.teams)
        return result

    def get_user_team_memberships(self, username: str) -> list[str]:
        """
        Return the organization teams that a user is a member of.

        Args:
            username: GitHub login

        Returns:
            Team names

        Raises:
            ConfigurationError: If username is empty
            GitHubError: If the query fails
        """
        if not username:
            raise ConfigurationError("username is required", config_key="username")

        log_with_context(
            logger,
            "debug",
            "querying user team memberships",
            org=self.settings.github_owner,
            user=username,
        )

        data = self._graphql(
            "query user team memberships",
            ORGANIZATION_TEAMS_FOR_USER_QUERY,
            {"owner": self.settings.github_owner, "username": username},
        )
        teams: list[dict[str, Any]] = (
            ((data.get("organization") or {}).get("teams") or {}).get("nodes") or []
        )

        memberships: list[str] = []
        for team in teams:
            members = (team.get("members") or {}).get("nodes") or []
            if any(m.get("login") == username for m in members):
                memberships.append(team["name"])
        return memberships

    def get_user_repo_permissions(self) -> str:
        """
        Return the actor's permission on the repository.

        Returns:
            One of admin, write, read or none

        Raises:
            ConfigurationError: If no actor is configured
            GitHubError: If the lookup fails
        """
        if not self.settings.github_actor:
            raise ConfigurationError("github-actor is required", config_key="GITHUB_ACTOR")

        log_with_context(logger, "debug", "querying user repo permissions")

        return self._call(
            "get user repo permissions",
            PULL_REQUEST_IGNORED_STATUS_CODES,
            lambda: self._repo().get_collaborator_permission(self.settings.github_actor),
        )

    def get_policy_data(self) -> GetPolicyDataResult:
        """
        Aggregate actor permissions, actor teams and approvers for policy evaluation.

        Approvers are only looked up when running for a pull request.
        """
        access_level = self.get_user_repo_permissions()

        actor_teams: list[str] | None = None
        if self.settings.include_teams:
            actor_teams = self.get_user_team_memberships(self.settings.github_actor)

        approvers: GetLatestApproversResult | None = None
        if self._pull_request_number > 0:
            approvers = self.get_latest_approvers()

        return GetPolicyDataResult(
            github=GitHubPolicyData(
                pull_request_approvers=approvers,
                actor=GitHubActorData(
                    username=self.settings.github_actor,
                    access_level=access_level,
                    teams=actor_teams,
                ),
            )
        )

    # Reports

    def validate_reporter_inputs(self) -> None:
        """Check owner, repo, and pull request number or commit SHA."""
        merr = ErrorList()
        if not self.settings.github_owner:
            merr.add("github owner is required")
        if not self.settings.github_repo:
            merr.add("github repo is required")
        if self._pull_request_number <= 0 and not self.settings.github_sha:
            merr.add("one of github pull request number or github sha are required")
        merr.raise_if_any()

    @property
    def log_url(self) -> str:
        """Link to the workflow logs, resolved to the job when possible."""
        if self._log_url is None:
            self._log_url = self._resolve_log_url()
        return self._log_url

    def _resolve_log_url(self) -> str:
        s = self.settings
        url = ""
        if s.github_server_url or s.github_run_id > 0 or s.github_run_attempt > 0:
            url = (
                f"{s.github_server_url}/{s.github_owner}/{s.github_repo}"
                f"/actions/runs/{s.github_run_id}/attempts/{s.github_run_attempt}"
            )

        if s.github_job:
            try:
                url = self._resolve_job_logs_url()
            except GuardianError as e:
                log_with_context(
                    logger,
                    "debug",
                    "failed to resolve job logs url",
                    job=s.github_job,
                    error=str(e),
                )
        return url

    def _resolve_job_logs_url(self) -> str:
        def call() -> list[tuple[str, str]]:
            run = self._repo().get_workflow_run(self.settings.github_run_id)
            return [(job.name, job.html_url) for job in run.jobs()]

        jobs = self._call("list jobs for workflow run", PULL_REQUEST_IGNORED_STATUS_CODES, call)
        for name, html_url in jobs:
            if name == self.settings.github_job:
                return html_url
        raise GitHubError(f"no job found matching name {self.settings.github_job}")

    def _create_issue_comment(self, body: str) -> None:
        number = self.pull_request_number()

        def call() -> None:
            self._repo().get_issue(number).create_comment(body)

        self._call("create pull request comment", ISSUE_IGNORED_STATUS_CODES, call)

    def report_status(self, status: Status, params: StatusParams) -> None:
        """
        Post a status comment on the pull request.

        Raises:
            MultiError: If owner, repo or pull request identity is missing
            NoPullRequestsError: If the pull request cannot be resolved
            GuardianError: If the comment cannot be created
        """
        self.validate_reporter_inputs()
        self.pull_request_number()

        msg = status_message(status, params, self.log_url, GITHUB_MAX_COMMENT_LENGTH)
        self._create_issue_comment(msg)

    def report_entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        """Post the entrypoints summary comment on the pull request."""
        self.validate_reporter_inputs()
        self.pull_request_number()

        msg = entrypoints_summary_message(params, self.log_url)
        self._create_issue_comment(msg)

    def list_reports(self, opts: ListReportsOptions) -> ListReportsResult:
        """
        List one page of pull request comments.

        The page is sliced out of the comment list, so opts.per_page applies
        whatever page size the client fetches with. A full page means another
        page may follow.
        """
        number = self.pull_request_number()
        start = (opts.page - 1) * opts.per_page

        def call() -> list[Report]:
            comments = self._repo().get_issue(number).get_comments()
            return [
                Report(id=c.id, body=c.body or "")
                for c in comments[start : start + opts.per_page]
            ]

        reports = self._call("list pull request comments", ISSUE_IGNORED_STATUS_CODES, call)

        pagination = None
        if len(reports) >= opts.per_page:
            pagination = Pagination(next_page=opts.page + 1)

        return ListReportsResult(reports=reports, pagination=pagination)

    def delete_report(self, report_id: int) -> None:
        """Delete a pull request comment."""
        number = self.pull_request_number()

        def call() -> None:
            self._repo().get_issue(number).get_comment(report_id).delete()

        self._call("delete pull request comment", ISSUE_IGNORED_STATUS_CODES, call)

    def update_report(self, report_id: int, body: str) -> None:
        """Replace the body of a pull request comment."""
        number = self.pull_request_number()

        def call() -> None:
            self._repo().get_issue(number).get_comment(report_id).edit(body)

        self._call("update pull request comment", ISSUE_IGNORED_STATUS_CODES, call)

    # Workflow metadata

    def modifier_content(self) -> str:
        """
        Return the pull request body(ies) that workflow modifiers are parsed from.

        For pull request events this is the event's pull request body. For
        push events, the bodies of every pull request containing the commit
        are concatenated.

        Raises:
            NoPullRequestsError: For push events without an associated pull request
        """
        event = self.settings.github_event_name

        if event in PULL_REQUEST_EVENTS:
            log_with_context(
                logger,
                "debug",
                "modifier content from pull request",
                pull_request_number=self._pull_request_number,
            )
            return self.settings.github_pull_request_body

        if event in PUSH_EVENTS:
            pull_requests = self.get_pull_requests_for_commit(self.settings.github_sha)
            if not pull_requests:
                raise NoPullRequestsError(self.settings.github_sha)
            return "".join(pr.body or "" for pr in pull_requests)

        log_with_context(logger, "debug", "returning no modifier content")
        return ""

    def storage_prefix(self) -> str:
        """
        Return the storage prefix guardian-plans/<owner>/<repo>/<pull request>.

        Empty for events that are not tied to a pull request.

        Raises:
            MultiError: If a pull request event lacks owner, repo or number
            NoPullRequestsError: For push events without an associated pull request
        """
        s = self.settings
        event = s.github_event_name

        if event in PULL_REQUEST_EVENTS:
            merr = ErrorList()
            if not s.github_owner:
                merr.add("github owner is required for storage")
            if not s.github_repo:
                merr.add("github repo is required for storage")
            if self._pull_request_number <= 0:
                merr.add("github pull request number is required for storage")
            merr.raise_if_any()
            return f"guardian-plans/{s.github_owner}/{s.github_repo}/{self._pull_request_number}"

        if event in PUSH_EVENTS:
            pull_request = self._first_pull_request_for_commit(s.github_sha)
            return f"guardian-plans/{s.github_owner}/{s.github_repo}/{pull_request.number}"

        log_with_context(logger, "debug", "returning no storage prefix")
        return ""
