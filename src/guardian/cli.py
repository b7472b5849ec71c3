"""
CLI interface for Guardian.

Provides the commands that CI workflows run against the code review
platform.

Usage:
    guardian assign-reviewers --user alice --team platform-admins
    guardian report-status --status SUCCESS --operation plan --dir tf/proj
    guardian clear-reports
    guardian fetch-data --output-dir out
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from types import FrameType

from guardian.config import SORTED_PLATFORM_TYPES, Settings, load_settings
from guardian.errors import GuardianError
from guardian.logging_config import LogContext, get_logger, log_with_context, setup_logging
from guardian.platform.base import Platform
from guardian.platform.factory import new_platform
from guardian.platform.models import AssignReviewersInput, Status, StatusParams
from guardian.policy_data import fetch_policy_data
from guardian.reporter import REPORTER_TYPE_PLATFORM, SORTED_REPORTER_TYPES, new_reporter

logger = get_logger(__name__)

STATUS_CHOICES = {s.name: s for s in Status}


def _install_signal_handlers(cancel_event: threading.Event) -> None:
    def handler(signum: int, frame: FrameType | None) -> None:
        _ = frame
        log_with_context(logger, "warning", "Shutdown signal received", signal=signum)
        cancel_event.set()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for every command."""
    parser = argparse.ArgumentParser(
        prog="guardian",
        description="Guardian - Terraform actuation through code review platforms",
    )
    _ = parser.add_argument(
        "--platform",
        type=str,
        default=None,
        help=f"Code review platform, one of {SORTED_PLATFORM_TYPES} "
        "(default: inferred from the CI environment)",
    )
    _ = parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # assign-reviewers command
    assign_parser = subparsers.add_parser(
        "assign-reviewers",
        help="Request reviews from users and teams",
    )
    _ = assign_parser.add_argument(
        "--user", action="append", default=[], help="User to request (repeatable)"
    )
    _ = assign_parser.add_argument(
        "--team", action="append", default=[], help="Team to request (repeatable)"
    )

    # report-status command
    status_parser = subparsers.add_parser(
        "report-status",
        help="Report the status of an operation",
    )
    _ = status_parser.add_argument(
        "--status", required=True, choices=sorted(STATUS_CHOICES), help="Run status"
    )
    _ = status_parser.add_argument("--operation", default="", help="Operation name, e.g. plan")
    _ = status_parser.add_argument("--dir", default="", help="Terraform entrypoint directory")
    _ = status_parser.add_argument("--message", default="", help="Message to include")
    _ = status_parser.add_argument("--error-message", default="", help="Error to include")
    _ = status_parser.add_argument(
        "--details-file",
        type=str,
        default=None,
        help="File whose content is shown in the details section",
    )
    _ = status_parser.add_argument(
        "--has-diff", action="store_true", help="Render the details as a diff"
    )
    _ = status_parser.add_argument(
        "--reporter",
        choices=SORTED_REPORTER_TYPES,
        default=REPORTER_TYPE_PLATFORM,
        help="Where to send the report (default: platform)",
    )

    # clear-reports command
    _ = subparsers.add_parser(
        "clear-reports",
        help="Delete every report Guardian posted on the change request",
    )

    # fetch-data command
    fetch_parser = subparsers.add_parser(
        "fetch-data",
        help="Save policy evaluation data as JSON",
    )
    _ = fetch_parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory to write the policy data file (default: GUARDIAN_OUTPUT_DIR or .)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    CLI main entry point.

    Args:
        argv: Arguments to parse (sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    command: str | None = str(args.command) if args.command else None
    if not command:
        parser.print_help()
        return 1

    # Load configuration
    try:
        settings = load_settings(
            platform=args.platform,
            log_level=args.log_level,
            output_dir=getattr(args, "output_dir", None),
        )
    except GuardianError as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.log_level, settings.log_format)

    cancel_event = threading.Event()
    _install_signal_handlers(cancel_event)

    with LogContext():
        try:
            platform = new_platform(settings, cancel_event=cancel_event)

            if command == "assign-reviewers":
                return cmd_assign_reviewers(args, platform)
            if command == "report-status":
                return cmd_report_status(args, platform, settings)
            if command == "clear-reports":
                return cmd_clear_reports(platform)
            if command == "fetch-data":
                return cmd_fetch_data(platform, settings)
            print(f"Unknown command: {command}", file=sys.stderr)
            return 1

        except Exception as e:
            log_with_context(
                logger,
                "error",
                "Command failed",
                command=command,
                error=str(e),
            )
            print(f"Error: {e}", file=sys.stderr)
            return 1


def cmd_assign_reviewers(args: argparse.Namespace, platform: Platform) -> int:
    """
    Request reviews from the given users and teams.

    Returns:
        Exit code
    """
    inputs = AssignReviewersInput(users=tuple(args.user), teams=tuple(args.team))
    result = platform.assign_reviewers(inputs)

    for user in result.users or []:
        print(f"Assigned user: {user}")
    for team in result.teams or []:
        print(f"Assigned team: {team}")
    return 0


def cmd_report_status(args: argparse.Namespace, platform: Platform, settings: Settings) -> int:
    """
    Report a status through the selected reporter.

    Returns:
        Exit code
    """
    details = ""
    if args.details_file:
        details = Path(args.details_file).read_text(encoding="utf-8")

    params = StatusParams(
        operation=args.operation,
        dir=args.dir,
        message=args.message,
        error_message=args.error_message,
        details=details,
        has_diff=args.has_diff,
    )

    reporter = new_reporter(args.reporter, platform=platform, output_dir=settings.output_dir)
    reporter.status(STATUS_CHOICES[args.status], params)
    return 0


def cmd_clear_reports(platform: Platform) -> int:
    """
    Delete Guardian's previous reports.

    Returns:
        Exit code
    """
    platform.clear_reports()
    return 0


def cmd_fetch_data(platform: Platform, settings: Settings) -> int:
    """
    Save policy data to the output directory.

    Returns:
        Exit code
    """
    path = fetch_policy_data(platform, settings.output_dir)
    print(f"Saved policy data to local file: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
