"""
Retry policy, error classification and the retry executor.

Every call the metadata client makes to the YouTube Data API goes through
one shared ``RetryExecutor``:

- ``RetryConfig.delay`` computes the exponential backoff for an attempt
- ``classify_error`` sorts a failure into transient, permanent or unknown
- ``RetryExecutor.execute`` runs an operation with bounded attempts,
  stops at once on permanent errors and on cancellation, and reports one
  observer event per attempt
"""

import asyncio
import enum
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from core.exceptions import (
    NonRetryableError,
    RetryableError,
    RetryExhaustedError,
    SyncCancelledError,
)
from ingestion.observer import SyncObserver

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    """Classification of a failed external call"""
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RetryConfig:
    """
    Bounded exponential backoff.

    Attributes:
        max_attempts: Total calls allowed, including the first
        initial_delay: Seconds to wait after the first failure
        max_delay: Upper bound for any single wait, in seconds
        multiplier: Growth factor between consecutive waits
    """
    max_attempts: int = 5
    initial_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays cannot be negative")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt ``attempt`` (1-based; <= 0 counts as 1)"""
        if attempt <= 1:
            return min(self.initial_delay, self.max_delay)
        return min(self.initial_delay * (self.multiplier ** (attempt - 1)), self.max_delay)

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        return cls(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            initial_delay=settings.RETRY_INITIAL_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
            multiplier=settings.RETRY_MULTIPLIER,
        )


def classify_status(status_code: int) -> ErrorKind:
    """429 and 5xx are transient, every other 4xx is permanent"""
    if status_code == 429 or 500 <= status_code <= 599:
        return ErrorKind.TRANSIENT
    if 400 <= status_code <= 499:
        return ErrorKind.PERMANENT
    return ErrorKind.UNKNOWN


def classify_error(error: BaseException) -> ErrorKind:
    """
    Classify a failure raised by an external call.

    An HTTP status code on the error decides first. Without one, the
    retryable/non-retryable mixins decide, and anything else (network
    blips, undecodable bodies) is unknown.
    """
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return classify_status(status_code)

    if isinstance(error, NonRetryableError):
        return ErrorKind.PERMANENT
    if isinstance(error, RetryableError):
        return ErrorKind.TRANSIENT

    return ErrorKind.UNKNOWN


class RetryExecutor:
    """
    Run async operations under a shared retry policy.

    One executor is created per run and reused for every API call. Setting
    ``cancel_event`` aborts a pending backoff sleep and prevents further
    attempts; the executor then raises ``SyncCancelledError``.
    """

    def __init__(
        self,
        config: RetryConfig,
        observer: SyncObserver,
        cancel_event: Optional[asyncio.Event] = None
    ):
        self.config = config
        self.observer = observer
        self.cancel_event = cancel_event or asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "operation",
        labels: Optional[Dict[str, Any]] = None
    ) -> T:
        """
        Call ``operation`` until it succeeds, fails permanently or runs out of attempts.

        Args:
            operation: Zero-argument callable returning an awaitable
            operation_name: Name reported in events and errors
            labels: Extra labels attached to every attempt event

        Returns:
            Whatever the operation returns on its first successful attempt

        Raises:
            The operation's own exception when it is classified permanent
            RetryExhaustedError: When every attempt failed transiently
            SyncCancelledError: When the cancel event fires
        """
        labels = labels or {}
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.config.max_attempts + 1):
            if self.cancelled:
                raise SyncCancelledError(
                    f"{operation_name} cancelled before attempt {attempt}",
                    context={"operation": operation_name, "attempt": attempt}
                )

            try:
                result = await operation()
            except (SyncCancelledError, asyncio.CancelledError):
                raise
            except Exception as e:
                last_error = e
            else:
                self.observer.emit(
                    "info" if attempt > 1 else "debug",
                    f"{operation_name} succeeded on attempt {attempt}",
                    {
                        **labels,
                        "operation": operation_name,
                        "attempt": attempt,
                        "max_attempts": self.config.max_attempts,
                        "delay": 0.0,
                        "error_kind": None,
                    }
                )
                return result

            kind = classify_error(last_error)
            is_last = attempt == self.config.max_attempts
            delay = 0.0 if kind == ErrorKind.PERMANENT or is_last else self.config.delay(attempt)

            self.observer.emit(
                "error" if kind == ErrorKind.PERMANENT else "warning",
                f"{operation_name} attempt {attempt}/{self.config.max_attempts} failed: {last_error}",
                {
                    **labels,
                    "operation": operation_name,
                    "attempt": attempt,
                    "max_attempts": self.config.max_attempts,
                    "delay": delay,
                    "error_kind": kind.value,
                }
            )

            if kind == ErrorKind.PERMANENT:
                raise last_error

            if is_last:
                break

            await self._sleep(delay, operation_name, attempt)

        raise RetryExhaustedError(
            f"{operation_name} failed after {self.config.max_attempts} attempts",
            attempts=self.config.max_attempts,
            last_error=last_error,
            context={"operation": operation_name, **labels}
        )

    async def _sleep(self, delay: float, operation_name: str, attempt: int) -> None:
        """Wait ``delay`` seconds unless the cancel event fires first"""
        try:
            await asyncio.wait_for(self.cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return

        raise SyncCancelledError(
            f"{operation_name} cancelled during backoff after attempt {attempt}",
            context={"operation": operation_name, "attempt": attempt}
        )
