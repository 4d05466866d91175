"""
Custom exceptions for the channel sync pipeline with structured error context.

This module provides the exception hierarchy used throughout the sync
pipeline. Each exception includes context information for debugging and
monitoring, and serialises with ``to_dict()`` so per-channel failures can
be recorded in run results and the ``sync_runs`` audit table.

Exception Hierarchy:
    SyncException (base)
    ├── ConfigurationError
    ├── ExtractionError
    │   ├── APIExtractionError (carries status_code)
    │   │   ├── NetworkError / RateLimitError / ServerError      (retryable)
    │   │   └── AuthenticationError / BadRequestError            (non-retryable)
    │   ├── ResourceNotFoundError
    │   │   └── ChannelNotFoundError
    │   └── PartialFetchError
    ├── TransformationError
    │   └── DataFormatError
    ├── LoadError
    │   └── SinkWriteError
    ├── RetryExhaustedError
    ├── SyncCancelledError
    ├── SyncRunFailedError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class SyncException(Exception):
    """
    Base exception for all sync-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (channel, operation, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None
    ):
        self.message = message
        self.context = dict(context or {})
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(SyncException):
    """
    Mixin for errors that should trigger retry logic.

    Use this for transient errors like:
    - Network timeouts and connection resets
    - Rate limiting (HTTP 429)
    - Server errors (HTTP 5xx)
    """
    pass


class NonRetryableError(SyncException):
    """
    Mixin for errors that should NOT trigger retry logic.

    Use this for permanent errors like:
    - Authentication failures (HTTP 401, 403)
    - Resource not found (HTTP 404, unknown channel)
    - Malformed requests or payloads
    """
    pass


# ============================================================================
# Configuration Errors
# ============================================================================

class ConfigurationError(SyncException):
    """
    Precondition failure raised before a run starts iterating channels.

    Examples: no enabled channels, missing API key, non-positive limits.
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(SyncException):
    """Base exception for metadata API failures."""
    pass


class APIExtractionError(ExtractionError):
    """
    Exception raised when a metadata API call fails.

    Context should include:
        - endpoint: The API resource that failed (channels, playlistItems, videos)
        - status_code: HTTP status code (if applicable)
        - response_body: Response body (truncated if large)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message, context, original_exception)
        self.status_code = status_code
        if status_code is not None:
            self.context["status_code"] = status_code


class NetworkError(RetryableError, APIExtractionError):
    """Network-level errors (timeouts, connection failures) that should be retried."""
    pass


class RateLimitError(RetryableError, APIExtractionError):
    """Rate limiting errors (HTTP 429) that should be retried with backoff."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
        status_code: Optional[int] = 429,
        retry_after: Optional[int] = None
    ):
        super().__init__(message, context, original_exception, status_code=status_code)
        self.retry_after = retry_after  # Seconds suggested by the server
        if retry_after:
            self.context["retry_after"] = retry_after


class ServerError(RetryableError, APIExtractionError):
    """Server errors (HTTP 5xx) that should be retried."""
    pass


class AuthenticationError(NonRetryableError, APIExtractionError):
    """Authentication failures (HTTP 401, 403) that should not be retried."""
    pass


class BadRequestError(NonRetryableError, APIExtractionError):
    """Any other 4xx response; the request itself is wrong."""
    pass


class ResourceNotFoundError(NonRetryableError, APIExtractionError):
    """Resource not found errors (HTTP 404) that should not be retried."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
        status_code: Optional[int] = 404
    ):
        super().__init__(message, context, original_exception, status_code=status_code)


class ChannelNotFoundError(ResourceNotFoundError):
    """
    The channel id did not resolve to a channel.

    The API answers ``channels.list`` for an unknown id with HTTP 200 and an
    empty ``items`` list, so the 404 status is synthesised here.
    """
    pass


class PartialFetchError(ExtractionError):
    """
    A detail batch failed after earlier batches had already succeeded.

    Attributes:
        fetched_items: Items returned by the batches that succeeded
        batch_index: Zero-based index of the batch that failed
        status_code: Status code of the underlying failure, None after retry exhaustion
    """

    def __init__(
        self,
        message: str,
        fetched_items: Optional[List[Any]] = None,
        batch_index: int = 0,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None
    ):
        super().__init__(message, context, original_exception)
        self.fetched_items = list(fetched_items or [])
        self.batch_index = batch_index
        self.status_code = getattr(original_exception, "status_code", None)
        self.context["batch_index"] = batch_index
        if self.status_code is not None:
            self.context["status_code"] = self.status_code
        self.context["items_fetched"] = len(self.fetched_items)


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(SyncException):
    """Base exception for snapshot building failures."""
    pass


class DataFormatError(NonRetryableError, TransformationError):
    """Malformed API payloads that should not be retried."""
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(SyncException):
    """Base exception for analytical store failures."""
    pass


class SinkWriteError(LoadError):
    """
    Exception raised when a snapshot batch cannot be written.

    Context should include:
        - table_name: Target table
        - records: Number of records in the failed write
    """
    pass


# ============================================================================
# Retry / Run Outcome Errors
# ============================================================================

class RetryExhaustedError(SyncException):
    """
    Every allowed attempt failed with a transient or unknown error.

    Attributes:
        attempts: Number of attempts made
        last_error: The exception raised by the final attempt
    """

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: BaseException,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context, original_exception=last_error)
        self.attempts = attempts
        self.last_error = last_error
        self.context["attempts"] = attempts


class SyncCancelledError(SyncException):
    """
    The run's cancellation signal fired.

    Raised by the retry executor when the signal interrupts a backoff sleep
    or arrives before an attempt, and by the runner (with ``result`` set)
    when channels were skipped because of it.
    """

    def __init__(
        self,
        message: str = "Sync cancelled",
        context: Optional[Dict[str, Any]] = None,
        result: Optional[Any] = None
    ):
        super().__init__(message, context)
        self.result = result


class SyncRunFailedError(SyncException):
    """Every attempted channel failed; carries the RunResult in ``result``."""

    def __init__(
        self,
        message: str,
        result: Any,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context)
        self.result = result
