"""
Build the sync collaborators from settings and run one sync.

Shared by the HTTP host, the scheduler job and the one-shot script. The run
deadline (SYNC_TIMEOUT_SECONDS) is enforced by setting the run's cancel
event, so pending backoff sleeps stop and no new channel starts; calls
already on the wire finish within the HTTP timeout.
"""

import asyncio
import logging
from typing import Optional

from core.config import Settings, settings as default_settings
from core.database import async_session_maker
from core.exceptions import (
    ConfigurationError,
    SyncCancelledError,
    SyncRunFailedError,
)
from ingestion.extractors.youtube_client import YouTubeMetadataClient
from ingestion.loaders.snapshot_writer import InMemorySnapshotSink, PostgresSnapshotWriter, SnapshotSink
from ingestion.observer import LoggingObserver, SyncObserver
from ingestion.result import RunResult
from ingestion.retry import RetryConfig, RetryExecutor
from ingestion.runner import SyncRunner
from models.sync_run import SyncRun

logger = logging.getLogger(__name__)


def build_sink(app_settings: Settings) -> SnapshotSink:
    if app_settings.DRY_RUN:
        logger.warning("DRY_RUN enabled: snapshots are kept in memory only")
        return InMemorySnapshotSink()
    return PostgresSnapshotWriter(async_session_maker, batch_size=app_settings.SINK_BATCH_SIZE)


async def record_sync_run(result: RunResult, trigger: str, error_message: Optional[str] = None) -> None:
    """Persist the run outcome to ``sync_runs``"""
    async with async_session_maker() as session:
        session.add(SyncRun(
            run_date=result.run_date,
            status=result.status,
            trigger=trigger,
            started_at=result.started_at,
            completed_at=result.finished_at,
            duration_seconds=result.duration_seconds,
            channels_total=result.attempted + len(result.skipped),
            channels_succeeded=len(result.succeeded),
            channels_failed=len(result.failed),
            channels_skipped=len(result.skipped),
            records_written=result.records_written,
            error_message=error_message,
            error_details=result.error_details() or None,
        ))
        await session.commit()


async def run_sync(
    trigger: str = "cli",
    app_settings: Optional[Settings] = None,
    cancel_event: Optional[asyncio.Event] = None,
    observer: Optional[SyncObserver] = None,
    sink: Optional[SnapshotSink] = None
) -> RunResult:
    """
    Run one sync over the configured channels.

    Args:
        trigger: Who started the run (http, scheduler, cli); stored on the audit row
        app_settings: Settings to use instead of the process-wide ones
        cancel_event: External cancel signal; also set when the deadline passes
        observer: Event sink (defaults to LoggingObserver)
        sink: Snapshot sink (defaults to Postgres, or memory when DRY_RUN)

    Returns:
        RunResult of a successful or partially successful run

    Raises:
        ConfigurationError: Missing API key or no enabled channels
        SyncRunFailedError: Every channel failed
        SyncCancelledError: The run was cancelled or hit its deadline
    """
    app_settings = app_settings or default_settings

    channels = app_settings.enabled_channels()
    if not channels:
        raise ConfigurationError("At least one enabled channel is required")
    if app_settings.YOUTUBE_API_KEY is None or not app_settings.YOUTUBE_API_KEY.get_secret_value():
        raise ConfigurationError("YOUTUBE_API_KEY is required")

    observer = observer or LoggingObserver()
    cancel_event = cancel_event or asyncio.Event()
    sink = sink or build_sink(app_settings)
    executor = RetryExecutor(RetryConfig.from_settings(app_settings), observer, cancel_event)

    loop = asyncio.get_running_loop()
    deadline = loop.call_later(app_settings.SYNC_TIMEOUT_SECONDS, cancel_event.set)

    try:
        async with YouTubeMetadataClient(
            api_key=app_settings.YOUTUBE_API_KEY.get_secret_value(),
            retry_executor=executor,
            observer=observer,
            base_url=app_settings.YOUTUBE_API_BASE_URL,
            timeout=app_settings.YOUTUBE_REQUEST_TIMEOUT,
            max_pages=app_settings.MAX_PAGES_PER_CHANNEL,
        ) as client:
            runner = SyncRunner(
                metadata_client=client,
                sink=sink,
                observer=observer,
                max_results_per_channel=app_settings.MAX_VIDEOS_PER_CHANNEL,
                cancel_event=cancel_event,
                max_concurrency=app_settings.SYNC_MAX_CONCURRENCY,
            )
            result = await runner.run(channels)

    except (SyncRunFailedError, SyncCancelledError) as e:
        if e.result is not None and not app_settings.DRY_RUN:
            await _record_safely(e.result, trigger, e.message)
        raise

    finally:
        deadline.cancel()

    if not app_settings.DRY_RUN:
        await _record_safely(result, trigger)

    return result


async def _record_safely(result: RunResult, trigger: str, error_message: Optional[str] = None) -> None:
    # The snapshots are already written; a failed audit insert must not change the run outcome
    try:
        await record_sync_run(result, trigger, error_message)
    except Exception as e:
        logger.error(f"Failed to record sync run: {str(e)}")
