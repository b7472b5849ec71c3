"""
Guardian: Terraform actuation through code review platforms.

Guardian runs Terraform from CI workflows and keeps the change request in
the loop: it posts plan and apply results as comments, requests reviews,
and gathers approval and permission data for policy evaluation.

Key Components:
    - Platform: GitHub, GitLab and local integrations behind one interface
    - RetryPolicy: Fibonacci backoff for every remote call
    - Reporter: Delivers status reports to a platform, files or stdout
    - CLI: Commands run by CI workflows

Environment Variables:
    GUARDIAN_PLATFORM: github, gitlab or local (default: inferred from CI)
    GITHUB_TOKEN / GITLAB_TOKEN: Platform credentials
    LOG_LEVEL: Logging level (default: INFO)

Usage:
    guardian report-status --status SUCCESS --operation plan --dir tf/proj
    python -m guardian clear-reports

Version: 0.1.0
License: Apache-2.0
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
