"""
Data model shared by every platform adapter.

Value objects passed into the platforms (StatusParams, the reviewer
inputs) are frozen so that adapters and test doubles cannot mutate what a
caller handed them.
"""

from enum import Enum
from typing import Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)


class Status(str, Enum):
    """Result of the operation Guardian is performing."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    NO_OPERATION = "NO CHANGES"
    POLICY_VIOLATION = "POLICY VIOLATION"
    UNKNOWN = "UNKNOWN"


class StatusParams(BaseModel):
    """
    Parameters for writing status reports.

    Attributes:
        operation: Operation name (plan, apply, ...), rendered upper-cased
        dir: Terraform entrypoint directory
        message: Free-form message
        error_message: Error text shown in its own section
        details: Long-form output, rendered in a collapsible section
        has_diff: Render details as a diff
    """

    model_config = ConfigDict(frozen=True)

    operation: str = ""
    dir: str = ""
    message: str = ""
    error_message: str = ""
    details: str = ""
    has_diff: bool = False


class EntrypointsSummaryParams(BaseModel):
    """Parameters for the entrypoints summary report."""

    model_config = ConfigDict(frozen=True)

    message: str = ""
    dirs: tuple[str, ...] = ()


class Report(BaseModel):
    """A comment or note on a change request."""

    model_config = ConfigDict(frozen=True)

    id: int
    body: str


class Pagination(BaseModel):
    """Next page to request; absence of a Pagination means end of list."""

    next_page: int


class ListReportsOptions(BaseModel):
    """Paging options for listing reports."""

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=100, ge=1, le=100)


class ListReportsResult(BaseModel):
    """One page of reports."""

    reports: list[Report] = Field(default_factory=list)
    pagination: Pagination | None = None


class AssignReviewersInput(BaseModel):
    """
    Principals requested as reviewers.

    Duplicates are allowed and order is preserved; adapters process users
    first, then teams, each in input order.
    """

    model_config = ConfigDict(frozen=True)

    users: tuple[str, ...] = ()
    teams: tuple[str, ...] = ()


class AssignReviewersResult(BaseModel):
    """
    Principals that were assigned successfully.

    A group with no successful assignment is None.
    """

    users: list[str] | None = None
    teams: list[str] | None = None


class GetLatestApproversResult(BaseModel):
    """Users whose latest review is an approval, and the teams they belong to."""

    users: list[str] = Field(default_factory=list)
    teams: list[str] = Field(default_factory=list)


class GitHubActorData(BaseModel):
    """Actor that triggered the workflow, as seen by GitHub."""

    username: str
    access_level: str
    teams: list[str] | None = None

    @model_serializer(mode="wrap")
    def _omit_empty_teams(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        if not data.get("teams"):
            data.pop("teams", None)
        return data


class GitHubPolicyData(BaseModel):
    """GitHub contextual data used for policy evaluation."""

    pull_request_approvers: GetLatestApproversResult | None = None
    actor: GitHubActorData


class GitLabActorData(BaseModel):
    """Actor that triggered the pipeline, as seen by GitLab."""

    username: str = ""
    access_level: str = ""


class GitLabPolicyData(BaseModel):
    """GitLab contextual data used for policy evaluation."""

    merge_request_approvers: GetLatestApproversResult = Field(
        default_factory=GetLatestApproversResult
    )
    actor: GitLabActorData = Field(default_factory=GitLabActorData)


class MockPolicyData(BaseModel):
    """Policy data produced when no code review platform is configured."""

    approvers: GetLatestApproversResult | None = None
    user_access_level: str = ""


class GetPolicyDataResult(BaseModel):
    """
    Payload for policy evaluation, tagged by platform.

    At most one of the variants may be populated; adapters always populate
    exactly one. Unset variants are left out when serialized, while None
    values inside a variant are kept as null.
    """

    github: GitHubPolicyData | None = None
    gitlab: GitLabPolicyData | None = None
    mock: MockPolicyData | None = None

    @model_serializer(mode="wrap")
    def _omit_unset_variants(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        return {k: v for k, v in data.items() if v is not None}

    @model_validator(mode="after")
    def _single_variant(self) -> Self:
        populated = [v for v in (self.github, self.gitlab, self.mock) if v is not None]
        if len(populated) > 1:
            raise ValueError("only one of github, gitlab or mock policy data may be set")
        return self
