"""Platform used when Guardian runs outside of a code review system."""

from guardian.platform.base import Platform
from guardian.platform.models import (
    AssignReviewersInput,
    AssignReviewersResult,
    EntrypointsSummaryParams,
    GetLatestApproversResult,
    GetPolicyDataResult,
    ListReportsOptions,
    ListReportsResult,
    MockPolicyData,
    Status,
    StatusParams,
)


class LocalPlatform(Platform):
    """Every operation succeeds without side effects."""

    def assign_reviewers(self, inputs: AssignReviewersInput) -> AssignReviewersResult:
        return AssignReviewersResult()

    def get_latest_approvers(self) -> GetLatestApproversResult:
        return GetLatestApproversResult()

    def get_user_repo_permissions(self) -> str:
        return ""

    def get_user_team_memberships(self, username: str) -> list[str]:
        return []

    def get_policy_data(self) -> GetPolicyDataResult:
        """Return a mock payload so policies can be evaluated locally."""
        return GetPolicyDataResult(mock=MockPolicyData(approvers=GetLatestApproversResult()))

    def report_status(self, status: Status, params: StatusParams) -> None:
        return None

    def report_entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        return None

    def list_reports(self, opts: ListReportsOptions) -> ListReportsResult:
        return ListReportsResult()

    def delete_report(self, report_id: int) -> None:
        return None

    def update_report(self, report_id: int, body: str) -> None:
        return None

    def modifier_content(self) -> str:
        return ""

    def storage_prefix(self) -> str:
        return ""
