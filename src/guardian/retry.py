"""
Retry executor for remote platform calls.

Each remote-call wrapper classifies its own failures: it raises
RetryableError to request another attempt, or any other exception to stop
immediately. The executor waits between attempts using a Fibonacci-shaped
backoff capped at a maximum delay.

Usage:
    from guardian.retry import RetryConfig, RetryPolicy, classify_status

    policy = RetryPolicy(RetryConfig(max_retries=3, initial_delay=1, max_delay=20))

    def _call() -> None:
        try:
            client.do_something()
        except SomeHttpError as e:
            if classify_status(e.status, IGNORED_STATUS_CODES):
                raise RetryableError(e) from e
            raise

    policy.run("do something", _call)
"""

import threading
from collections.abc import Callable, Collection, Iterator
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field

from guardian.errors import OperationCancelledError, RetryableError, RetryExhaustedError
from guardian.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 20.0


class RetryConfig(BaseModel):
    """
    Retry tuning for one platform client.

    Built once at startup and never modified. Backoff state is created
    fresh for every call.

    Attributes:
        max_retries: Additional attempts allowed after the first one
        initial_delay: First backoff delay in seconds
        max_delay: Upper bound for any single backoff delay in seconds
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    initial_delay: float = Field(default=DEFAULT_INITIAL_DELAY_SECONDS, ge=0)
    max_delay: float = Field(default=DEFAULT_MAX_DELAY_SECONDS, ge=0)


def fibonacci_backoff(initial_delay: float, max_delay: float) -> Iterator[float]:
    """
    Yield an endless Fibonacci sequence of delays, each capped at max_delay.

    The sequence starts at initial_delay, 2 * initial_delay.

    Example:
        >>> delays = fibonacci_backoff(1.0, 4.0)
        >>> [next(delays) for _ in range(6)]
        [1.0, 2.0, 3.0, 4.0, 4.0, 4.0]
    """
    a, b = initial_delay, 2 * initial_delay
    while True:
        yield min(a, max_delay)
        a, b = b, a + b


def classify_status(status_code: int | None, ignored_codes: Collection[int]) -> bool:
    """
    Decide whether a failed remote call may be retried.

    Args:
        status_code: HTTP status of the failed call, None if no response
        ignored_codes: Status codes that must not be retried

    Returns:
        True if the failure is retryable
    """
    if status_code is None:
        return True
    return status_code not in ignored_codes


class RetryPolicy:
    """
    Runs a callable with retries and backoff.

    Attributes:
        config: Retry tuning
        cancel_event: Optional event; once set, no further attempts are made
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """
        Initialize retry policy.

        Args:
            config: Retry tuning (defaults used if None)
            cancel_event: Event that aborts retries when set
        """
        self.config: RetryConfig = config or RetryConfig()
        self.cancel_event: threading.Event = cancel_event or threading.Event()

    def run(self, operation: str, fn: Callable[[], T]) -> T:
        """
        Call fn until it succeeds, fails terminally or retries run out.

        Args:
            operation: Short description used in logs and errors
            fn: Callable to invoke; raises RetryableError to be retried

        Returns:
            Whatever fn returns

        Raises:
            RetryExhaustedError: If every attempt raised RetryableError
            OperationCancelledError: If the cancel event is set
            Exception: Any terminal exception raised by fn, unchanged
        """
        delays = fibonacci_backoff(self.config.initial_delay, self.config.max_delay)
        attempt = 0

        while True:
            if self.cancel_event.is_set():
                raise OperationCancelledError(operation)

            attempt += 1
            try:
                return fn()
            except RetryableError as e:
                if attempt > self.config.max_retries:
                    raise RetryExhaustedError(operation, attempt, e.cause) from e.cause

                delay = next(delays)
                log_with_context(
                    logger,
                    "debug",
                    "retrying remote call",
                    operation=operation,
                    attempt=attempt,
                    max_retries=self.config.max_retries,
                    backoff_seconds=delay,
                    error=str(e.cause),
                )

                # Event.wait returns True when the event was set during the wait
                if self.cancel_event.wait(delay):
                    raise OperationCancelledError(operation) from e.cause
