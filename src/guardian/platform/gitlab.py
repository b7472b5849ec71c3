"""
GitLab platform integration.

Status reports are merge request notes managed through python-gitlab.
Reviewer assignment and policy data are not supported on GitLab yet; those
operations succeed with empty results so that pipelines keep running.

Usage:
    from guardian.config import get_settings
    from guardian.platform.gitlab import GitLabPlatform

    platform = GitLabPlatform(get_settings())
    platform.report_status(Status.FAILURE, StatusParams(operation="apply"))
"""

import threading
from collections.abc import Callable
from typing import TypeVar

import gitlab
import requests
from gitlab.v4.objects import ProjectMergeRequest

from guardian.config import Settings
from guardian.errors import ErrorList, GitLabError, RetryableError
from guardian.logging_config import get_logger, log_with_context
from guardian.platform.base import Platform
from guardian.platform.messages import (
    GITLAB_MAX_COMMENT_LENGTH,
    entrypoints_summary_message,
    status_message,
)
from guardian.platform.models import (
    AssignReviewersInput,
    AssignReviewersResult,
    EntrypointsSummaryParams,
    GetLatestApproversResult,
    GetPolicyDataResult,
    GitLabPolicyData,
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

IGNORED_STATUS_CODES = frozenset({403, 405, 422})

DEFAULT_GITLAB_URL = "https://gitlab.com"
REQUEST_TIMEOUT_SECONDS = 30


class GitLabPlatform(Platform):
    """
    Platform implementation for GitLab merge requests.

    Attributes:
        settings: Guardian settings holding the GitLab identity
        client: python-gitlab client
    """

    def __init__(
        self,
        settings: Settings,
        client: gitlab.Gitlab | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """
        Initialize the GitLab platform.

        A personal or project token wins over the CI job token.

        Args:
            settings: Guardian settings
            client: Pre-built python-gitlab client (built from settings if None)
            cancel_event: Event that aborts in-flight retries when set
        """
        self.settings = settings
        self._retry = RetryPolicy(settings.retry_config(), cancel_event)
        self._token = settings.gitlab_token or settings.gitlab_job_token

        if client is None:
            url = settings.gitlab_base_url or DEFAULT_GITLAB_URL
            if settings.gitlab_token:
                client = gitlab.Gitlab(
                    url, private_token=settings.gitlab_token, timeout=REQUEST_TIMEOUT_SECONDS
                )
            elif settings.gitlab_job_token:
                client = gitlab.Gitlab(
                    url, job_token=settings.gitlab_job_token, timeout=REQUEST_TIMEOUT_SECONDS
                )
            else:
                client = gitlab.Gitlab(url, timeout=REQUEST_TIMEOUT_SECONDS)

        self.client: gitlab.Gitlab = client

        log_with_context(
            logger,
            "debug",
            "Initialized GitLab platform",
            url=self.client.url,
            project=settings.gitlab_project_id,
            merge_request=settings.gitlab_merge_request_iid,
        )

    def _call(self, operation: str, fn: Callable[[], T]) -> T:
        def attempt() -> T:
            try:
                return fn()
            except gitlab.exceptions.GitlabError as e:
                if classify_status(e.response_code, IGNORED_STATUS_CODES):
                    raise RetryableError(e) from e
                raise GitLabError(
                    f"failed to {operation}: {e}",
                    status_code=e.response_code,
                    operation=operation,
                ) from e
            except requests.RequestException as e:
                raise RetryableError(e) from e

        return self._retry.run(operation, attempt)

    def _merge_request(self) -> ProjectMergeRequest:
        project = self.client.projects.get(self.settings.gitlab_project_id, lazy=True)
        return project.mergerequests.get(self.settings.gitlab_merge_request_iid, lazy=True)

    # Reviewers and policy data

    def assign_reviewers(self, inputs: AssignReviewersInput) -> AssignReviewersResult:
        """Not supported on GitLab; always an empty result."""
        return AssignReviewersResult()

    def get_latest_approvers(self) -> GetLatestApproversResult:
        """Not supported on GitLab; always empty."""
        return GetLatestApproversResult()

    def get_user_repo_permissions(self) -> str:
        """Not supported on GitLab; always empty."""
        return ""

    def get_user_team_memberships(self, username: str) -> list[str]:
        """Not supported on GitLab; always empty."""
        return []

    def get_policy_data(self) -> GetPolicyDataResult:
        """Return a GitLab payload with no approvers and no actor data."""
        return GetPolicyDataResult(gitlab=GitLabPolicyData())

    # Reports

    def validate_reporter_inputs(self) -> None:
        """Check project ID, merge request IID and token."""
        merr = ErrorList()
        if self.settings.gitlab_project_id <= 0:
            merr.add("gitlab project id is required")
        if self.settings.gitlab_merge_request_iid <= 0:
            merr.add("gitlab merge request id is required")
        if not self._token:
            merr.add("gitlab token is required")
        merr.raise_if_any()

    def _create_merge_request_note(self, body: str) -> None:
        log_with_context(
            logger,
            "debug",
            "creating merge request note",
            project=self.settings.gitlab_project_id,
            merge_request=self.settings.gitlab_merge_request_iid,
        )

        def call() -> None:
            self._merge_request().notes.create({"body": body})

        self._call("create merge request note", call)

    def report_status(self, status: Status, params: StatusParams) -> None:
        """
        Post a status note on the merge request.

        Raises:
            MultiError: If project, merge request or token is missing
            GuardianError: If the note cannot be created
        """
        self.validate_reporter_inputs()
        msg = status_message(status, params, self.settings.gitlab_job_url, GITLAB_MAX_COMMENT_LENGTH)
        self._create_merge_request_note(msg)

    def report_entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        """Post the entrypoints summary note on the merge request."""
        self.validate_reporter_inputs()
        msg = entrypoints_summary_message(params, self.settings.gitlab_job_url)
        self._create_merge_request_note(msg)

    def list_reports(self, opts: ListReportsOptions) -> ListReportsResult:
        """List one page of merge request notes."""
        self.validate_reporter_inputs()

        def call() -> list[Report]:
            notes = self._merge_request().notes.list(
                page=opts.page, per_page=opts.per_page, get_all=False
            )
            return [Report(id=n.id, body=n.body or "") for n in notes]

        reports = self._call("list merge request notes", call)

        pagination = None
        if len(reports) >= opts.per_page:
            pagination = Pagination(next_page=opts.page + 1)

        return ListReportsResult(reports=reports, pagination=pagination)

    def delete_report(self, report_id: int) -> None:
        """Delete a merge request note."""
        self.validate_reporter_inputs()

        def call() -> None:
            self._merge_request().notes.delete(report_id)

        self._call("delete merge request note", call)

    def update_report(self, report_id: int, body: str) -> None:
        """Replace the body of a merge request note."""
        self.validate_reporter_inputs()

        def call() -> None:
            self._merge_request().notes.update(report_id, {"body": body})

        self._call("update merge request note", call)

    # Workflow metadata

    def modifier_content(self) -> str:
        """Modifiers are not read from GitLab merge requests."""
        return ""

    def storage_prefix(self) -> str:
        """Return guardian-plans/<project>/<merge request>, or empty when either is unset."""
        project_id = self.settings.gitlab_project_id
        iid = self.settings.gitlab_merge_request_iid
        if project_id <= 0 or iid <= 0:
            return ""
        return f"guardian-plans/{project_id}/{iid}"
