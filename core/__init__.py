"""
Core utilities and configuration for the channel snapshot sync.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session factory for the snapshot store
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration (text or JSON lines)

Usage:
    from core.config import settings
    from core.database import async_session_maker
    from core.exceptions import RetryExhaustedError, ChannelNotFoundError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Get database session
    async with async_session_maker() as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "async_session_maker",
    "setup_logging",
    # Exceptions
    "SyncException",
    "ConfigurationError",
    "ExtractionError",
    "APIExtractionError",
    "NetworkError",
    "RateLimitError",
    "ServerError",
    "AuthenticationError",
    "BadRequestError",
    "ResourceNotFoundError",
    "ChannelNotFoundError",
    "PartialFetchError",
    "TransformationError",
    "DataFormatError",
    "LoadError",
    "SinkWriteError",
    "RetryableError",
    "NonRetryableError",
    "RetryExhaustedError",
    "SyncCancelledError",
    "SyncRunFailedError",
]
