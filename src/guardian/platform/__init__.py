"""
Code review platform integrations.

Key Components:
    - Platform: Interface implemented by every integration
    - GitHubPlatform: Pull request comments, reviewers and policy data on GitHub
    - GitLabPlatform: Merge request notes on GitLab
    - LocalPlatform: No-op platform for local runs
    - new_platform: Builds the platform selected by settings
"""

from guardian.platform.base import Platform
from guardian.platform.factory import new_platform, resolve_platform_type
from guardian.platform.github import GitHubPlatform
from guardian.platform.gitlab import GitLabPlatform
from guardian.platform.local import LocalPlatform
from guardian.platform.models import (
    AssignReviewersInput,
    AssignReviewersResult,
    EntrypointsSummaryParams,
    GetLatestApproversResult,
    GetPolicyDataResult,
    ListReportsOptions,
    ListReportsResult,
    Pagination,
    Report,
    Status,
    StatusParams,
)

__all__ = [
    "AssignReviewersInput",
    "AssignReviewersResult",
    "EntrypointsSummaryParams",
    "GetLatestApproversResult",
    "GetPolicyDataResult",
    "GitHubPlatform",
    "GitLabPlatform",
    "ListReportsOptions",
    "ListReportsResult",
    "LocalPlatform",
    "Pagination",
    "Platform",
    "Report",
    "Status",
    "StatusParams",
    "new_platform",
    "resolve_platform_type",
]
