"""
Reporters that deliver Guardian status reports.

A reporter decides where a status ends up: as a comment on the change
request, as markdown files for a later CI step to pick up, as a one-line
summary on stdout, or nowhere at all.

Usage:
    from guardian.reporter import new_reporter

    reporter = new_reporter("file", output_dir="out")
    reporter.status(Status.SUCCESS, StatusParams(operation="plan"))
"""

import os
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TextIO

from guardian.errors import ConfigurationError
from guardian.logging_config import get_logger, log_with_context
from guardian.platform.base import Platform
from guardian.platform.messages import entrypoints_summary_message, status_message
from guardian.platform.models import EntrypointsSummaryParams, Status, StatusParams

logger = get_logger(__name__)

REPORTER_TYPE_PLATFORM = "platform"
REPORTER_TYPE_FILE = "file"
REPORTER_TYPE_STDOUT = "stdout"
REPORTER_TYPE_NONE = "none"

SORTED_REPORTER_TYPES = sorted(
    [REPORTER_TYPE_PLATFORM, REPORTER_TYPE_FILE, REPORTER_TYPE_STDOUT, REPORTER_TYPE_NONE]
)

STATUS_FILENAME = "status_comment.md"
ENTRYPOINTS_SUMMARY_FILENAME = "entrypoints_summary.md"
OWNER_READ_WRITE_PERMS = 0o600


class Reporter(ABC):
    """Destination for status reports."""

    @abstractmethod
    def status(self, status: Status, params: StatusParams) -> None:
        """Report the status of a run."""

    @abstractmethod
    def entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        """Report the entrypoints summary."""

    @abstractmethod
    def clear(self) -> None:
        """Remove previous reports where the destination allows it."""


class PlatformReporter(Reporter):
    """Posts reports as comments through a Platform."""

    def __init__(self, platform: Platform) -> None:
        self.platform = platform

    def status(self, status: Status, params: StatusParams) -> None:
        self.platform.report_status(status, params)

    def entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        self.platform.report_entrypoints_summary(params)

    def clear(self) -> None:
        self.platform.clear_reports()


class FileReporter(Reporter):
    """
    Writes reports as markdown files.

    Messages are never truncated, since there is no comment size limit to
    respect. Files are readable by the owner only.

    Attributes:
        output_dir: Directory the files are written to
    """

    def __init__(self, output_dir: str | Path = ".") -> None:
        self.output_dir = Path(output_dir)

    def _write(self, filename: str, content: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, OWNER_READ_WRITE_PERMS)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def status(self, status: Status, params: StatusParams) -> None:
        path = self._write(STATUS_FILENAME, status_message(status, params, "", -1))
        log_with_context(logger, "debug", "wrote status comment to file", path=str(path))

    def entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        path = self._write(ENTRYPOINTS_SUMMARY_FILENAME, entrypoints_summary_message(params, ""))
        log_with_context(logger, "debug", "wrote entrypoints summary to file", path=str(path))

    def clear(self) -> None:
        return None


class StdoutReporter(Reporter):
    """Prints a one-line summary per report, e.g. "PLAN - SUCCESS: message"."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout

    def status(self, status: Status, params: StatusParams) -> None:
        line = ""
        if params.operation:
            line += params.operation.upper()
        try:
            status_text = Status(status).value
        except ValueError:
            status_text = Status.UNKNOWN.value
        line += f" - {status_text}"
        if params.message:
            line += f": {params.message}"
        print(line, file=self.stream)

    def entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        if params.message:
            print(params.message, file=self.stream)
        for d in params.dirs:
            print(d, file=self.stream)

    def clear(self) -> None:
        return None


class NoopReporter(Reporter):
    """Discards every report."""

    def status(self, status: Status, params: StatusParams) -> None:
        return None

    def entrypoints_summary(self, params: EntrypointsSummaryParams) -> None:
        return None

    def clear(self) -> None:
        return None


def new_reporter(
    kind: str,
    platform: Platform | None = None,
    output_dir: str | Path = ".",
    stream: TextIO | None = None,
) -> Reporter:
    """
    Build a reporter by type.

    Args:
        kind: One of platform, file, stdout or none (case-insensitive)
        platform: Platform to post through, required for the platform type
        output_dir: Directory for the file type
        stream: Stream for the stdout type (sys.stdout if None)

    Returns:
        Reporter instance

    Raises:
        ConfigurationError: If the type is unknown or its input is missing
    """
    kind = kind.strip().lower()

    if kind == REPORTER_TYPE_PLATFORM:
        if platform is None:
            raise ConfigurationError(
                "platform reporter requires a platform", config_key="reporter"
            )
        return PlatformReporter(platform)
    if kind == REPORTER_TYPE_FILE:
        return FileReporter(output_dir)
    if kind == REPORTER_TYPE_STDOUT:
        return StdoutReporter(stream)
    if kind == REPORTER_TYPE_NONE:
        return NoopReporter()

    raise ConfigurationError(
        f"unknown reporter type: {kind}",
        config_key="reporter",
        reason=f"Allowed values are {SORTED_REPORTER_TYPES}",
    )
