"""
Platform interface implemented by every code review integration.

Not every platform can do everything: the local platform, for example,
has nowhere to post comments. Such operations succeed with an empty
result instead of raising, so that local and dry-run workflows keep
working without a configured platform.
"""

from abc import ABC, abstractmethod

from guardian.logging_config import get_logger, log_with_context
from guardian.platform.messages import COMMENT_PREFIX
from guardian.platform.models import (
    AssignReviewersInput,
    AssignReviewersResult,
    EntrypointsSummaryParams,
    GetLatestApproversResult,
    GetPolicyDataResult,
    ListReportsOptions,
    ListReportsResult,
    Status,
    StatusParams,
)

logger = get_logger(__name__)

CLEAR_REPORTS_PAGE_SIZE = 100


class Platform(ABC):
    """Capabilities Guardian needs from a code review platform."""

    @abstractmethod
    def assign_reviewers(self, inputs: AssignReviewersInput) -> AssignReviewersResult:
        """Request reviews from users and teams on the current change request."""

    @abstractmethod
    def get_latest_approvers(self) -> GetLatestApproversResult:
        """Return principals whose latest review is an approval."""

    @abstractmethod
    def get_user_repo_permissions(self) -> str:
        """Return the actor's permission level on the repository."""

    @abstractmethod
    def get_user_team_memberships(self, username: str) -> list[str]:
        """Return the teams a user belongs to."""

    @abstractmethod
    def get_policy_data(self) -> GetPolicyDataResult:
        """Aggregate the data used for policy evaluation."""

    @abstractmethod
    def report_status(self, status: Status, params: StatusParams) -> None:
        """Post a status report on the change request."""

    @abstractmethod
    def report_entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        """Post the entrypoints summary on the change request."""

    @abstractmethod
    def list_reports(self, opts: ListReportsOptions) -> ListReportsResult:
        """List one page of reports on the change request."""

    @abstractmethod
    def delete_report(self, report_id: int) -> None:
        """Delete a report."""

    @abstractmethod
    def update_report(self, report_id: int, body: str) -> None:
        """Replace the body of a report."""

    @abstractmethod
    def modifier_content(self) -> str:
        """Return the text that workflow modifiers are parsed from."""

    @abstractmethod
    def storage_prefix(self) -> str:
        """Return the unique storage prefix for the current change request."""

    def validate_reporter_inputs(self) -> None:
        """
        Check the identity fields required before reporting.

        Raises:
            MultiError: If any required field is missing
        """

    def clear_reports(self) -> None:
        """
        Delete every report that Guardian posted on the change request.

        Pages through all reports and deletes those whose body starts with
        COMMENT_PREFIX. Reports written by anyone else are left untouched.
        All pages are listed before the first delete, since deleting shifts
        the remaining reports onto earlier pages.

        Raises:
            MultiError: If required identity fields are missing
            GuardianError: If listing or deleting fails
        """
        self.validate_reporter_inputs()

        opts = ListReportsOptions(per_page=CLEAR_REPORTS_PAGE_SIZE)
        to_delete: list[int] = []

        while True:
            response = self.list_reports(opts)

            for report in response.reports:
                if report.body.startswith(COMMENT_PREFIX):
                    to_delete.append(report.id)

            if response.pagination is None:
                break
            opts = ListReportsOptions(
                page=response.pagination.next_page,
                per_page=CLEAR_REPORTS_PAGE_SIZE,
            )

        for report_id in to_delete:
            self.delete_report(report_id)

        log_with_context(
            logger,
            "debug",
            "cleared reports",
            platform=type(self).__name__,
            deleted=len(to_delete),
        )
