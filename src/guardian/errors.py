"""
Custom exception classes for Guardian.

This module defines the exception hierarchy used by the platform adapters,
the retry executor and the CLI. Each exception states whether it may be
retried so that the retry executor and callers can make the same decision.

Exception Hierarchy:
    GuardianError (base)
    ├── ConfigurationError (missing or invalid settings)
    ├── MultiError (several configuration errors reported together)
    ├── PlatformError (remote API failures)
    │   ├── GitHubError
    │   └── GitLabError
    ├── RetryableError (wrapper signalling the retry executor to try again)
    ├── RetryExhaustedError (retries used up)
    ├── OperationCancelledError (cancellation requested)
    ├── NoPullRequestsError (no pull request for a commit SHA)
    └── ReviewerAssignmentError (every requested reviewer failed)

Retry Semantics:
    - Remote responses with a status code in a platform's ignored set are
      terminal and propagate immediately
    - Network failures, 5xx responses and missing responses are retried
    - Configuration errors are detected before any network call
"""

from collections.abc import Iterable
from typing import override


class GuardianError(Exception):
    """
    Base exception for all Guardian errors.

    Attributes:
        message: Human-readable error description
        retryable: Whether this error should be retried
        context: Additional context dictionary for structured logging
    """

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        context: dict[str, object] | None = None,
    ) -> None:
        """
        Initialize Guardian error.

        Args:
            message: Human-readable error description
            retryable: Whether this error should be retried
            context: Additional context for structured logging
        """
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        self.context = context or {}

    @override
    def __str__(self) -> str:
        """Return string representation of error."""
        return self.message


class ConfigurationError(GuardianError):
    """
    Error in Guardian configuration.

    Raised when required configuration is missing or invalid, including
    unsupported values for the platform flag. These are permanent errors
    that require user intervention.

    Attributes:
        config_key: Configuration key that is invalid
        reason: Specific validation failure reason
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        reason: str | None = None,
    ) -> None:
        """
        Initialize configuration error.

        Args:
            message: Human-readable error description
            config_key: Configuration key that failed validation
            reason: Why the configuration is invalid
        """
        context = {
            "config_key": config_key,
            "reason": reason,
        }
        super().__init__(message, retryable=False, context=context)
        self.config_key = config_key
        self.reason = reason


class MultiError(GuardianError):
    """
    Several errors reported together.

    Used for precondition validation so that every missing field is
    reported at once instead of only the first one. The rendered message
    joins the individual messages with newlines, in the order they were
    added.

    Attributes:
        errors: Individual error messages in insertion order
    """

    def __init__(self, errors: Iterable[str]) -> None:
        """
        Initialize aggregated error.

        Args:
            errors: Individual error messages
        """
        self.errors: list[str] = list(errors)
        super().__init__(
            "\n".join(self.errors),
            retryable=False,
            context={"errors": self.errors},
        )


class ErrorList:
    """
    Growable collection of error messages.

    Example:
        >>> merr = ErrorList()
        >>> if not owner:
        ...     merr.add("github owner is required")
        >>> merr.raise_if_any()
    """

    def __init__(self) -> None:
        """Initialize an empty error list."""
        self._errors: list[str] = []

    def add(self, message: str) -> None:
        """Append an error message."""
        self._errors.append(message)

    @property
    def errors(self) -> list[str]:
        """Collected messages in insertion order."""
        return list(self._errors)

    def __len__(self) -> int:
        """Return number of collected errors."""
        return len(self._errors)

    def __bool__(self) -> bool:
        """Return True when at least one error was collected."""
        return bool(self._errors)

    def raise_if_any(self) -> None:
        """
        Raise the collected errors, if any.

        Raises:
            MultiError: When at least one error was added
        """
        if self._errors:
            raise MultiError(self._errors)


class PlatformError(GuardianError):
    """
    Error communicating with a code review platform.

    Attributes:
        status_code: HTTP status code, None when no response was received
        operation: Remote operation that failed
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        operation: str | None = None,
        retryable: bool = False,
    ) -> None:
        """
        Initialize platform error.

        Args:
            message: Human-readable error description
            status_code: HTTP status code from the platform
            operation: Remote operation that failed
            retryable: Whether to retry
        """
        context = {
            "status_code": status_code,
            "operation": operation,
        }
        super().__init__(message, retryable=retryable, context=context)
        self.status_code = status_code
        self.operation = operation


class GitHubError(PlatformError):
    """
    Error communicating with the GitHub API.

    Common failures include:
    - Rate limiting and 5xx responses (retryable)
    - Network timeouts (retryable)
    - Insufficient permissions (permanent)
    - Validation failures such as unknown reviewers (permanent)
    """


class GitLabError(PlatformError):
    """Error communicating with the GitLab API."""


class RetryableError(GuardianError):
    """
    Marker wrapping a failure that the retry executor should retry.

    Remote-call wrappers raise this around the original exception to
    request another attempt; any other exception is terminal.

    Attributes:
        cause: The original exception
    """

    def __init__(self, cause: BaseException) -> None:
        """
        Initialize retryable wrapper.

        Args:
            cause: Original exception to retry on
        """
        super().__init__(str(cause), retryable=True)
        self.cause = cause


class RetryExhaustedError(GuardianError):
    """
    Raised when a retryable operation keeps failing after all attempts.

    Attributes:
        operation: Name of the operation that was retried
        attempts: Total attempts made
    """

    def __init__(self, operation: str, attempts: int, cause: BaseException) -> None:
        """
        Initialize retry exhausted error.

        Args:
            operation: Name of the operation that was retried
            attempts: Total attempts made
            cause: Last failure observed
        """
        super().__init__(
            f"failed to {operation} after {attempts} attempts: {cause}",
            retryable=False,
            context={"operation": operation, "attempts": attempts},
        )
        self.operation = operation
        self.attempts = attempts


class OperationCancelledError(GuardianError):
    """Raised when cancellation is requested while an operation is retrying."""

    def __init__(self, operation: str) -> None:
        """
        Initialize cancellation error.

        Args:
            operation: Name of the operation that was cancelled
        """
        super().__init__(
            f"{operation} cancelled",
            retryable=False,
            context={"operation": operation},
        )
        self.operation = operation


class NoPullRequestsError(GuardianError):
    """
    Raised when no pull request is associated with a commit SHA.

    There is no safe default pull request to fall back to, so this is
    always terminal.
    """

    def __init__(self, sha: str) -> None:
        """
        Initialize error.

        Args:
            sha: Commit SHA that was looked up
        """
        super().__init__(
            f"no pull requests found for commit sha: {sha}",
            retryable=False,
            context={"sha": sha},
        )
        self.sha = sha


class ReviewerAssignmentError(GuardianError):
    """Raised when every requested reviewer failed to be assigned."""
