# ============================================================================
# File: ingestion/runner.py
# Description: Channel sync orchestrator with per-channel failure isolation
# ============================================================================
"""
Sync Runner - Orchestrates fetch, build and write for every configured channel.

This module provides run orchestration with:
- Strict per-channel pipeline order (fetch → build → write)
- Per-channel failure isolation (one channel never stops the others)
- Total failure distinguished from partial failure
- Cooperative cancellation between channels
- Optional bounded concurrency across channels
"""

import asyncio
from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Sequence, Union

from core.exceptions import (
    ConfigurationError,
    SyncCancelledError,
    SyncException,
    SyncRunFailedError,
)
from ingestion.base import MetadataSource
from ingestion.loaders.snapshot_writer import SnapshotSink
from ingestion.observer import SyncObserver
from ingestion.result import RunResult
from ingestion.transformers.snapshot_builder import SnapshotBuilder
from schemas.snapshot import ChannelConfig


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncRunner:
    """
    Channel sync orchestrator

    Responsibilities:
    - Iterate the enabled channels of one run
    - For each channel: resolve uploads, list ids, fetch details, build snapshots, write
    - Record every channel outcome in a RunResult, never letting a channel error escape
    - Decide the run-level outcome (success, partial success, failure, cancelled)
    """

    def __init__(
        self,
        metadata_client: MetadataSource,
        sink: SnapshotSink,
        observer: SyncObserver,
        max_results_per_channel: int,
        run_date: Optional[date] = None,
        cancel_event: Optional[asyncio.Event] = None,
        max_concurrency: int = 1,
        clock: Callable[[], datetime] = _utcnow
    ):
        if max_results_per_channel <= 0:
            raise ConfigurationError(
                "max_results_per_channel must be positive",
                context={"max_results_per_channel": max_results_per_channel}
            )
        if max_concurrency <= 0:
            raise ConfigurationError(
                "max_concurrency must be positive",
                context={"max_concurrency": max_concurrency}
            )

        self.client = metadata_client
        self.sink = sink
        self.observer = observer
        self.max_results_per_channel = max_results_per_channel
        self.run_date = run_date
        self.cancel_event = cancel_event or asyncio.Event()
        self.max_concurrency = max_concurrency
        self.clock = clock

    async def run(self, channels: Sequence[Union[ChannelConfig, str]]) -> RunResult:
        """
        Run one sync over ``channels``.

        Args:
            channels: Channel configs (disabled ones are ignored) or bare ids

        Returns:
            RunResult when at least one channel succeeded; failures of the
            other channels are kept in ``result.failed``

        Raises:
            ConfigurationError: If there is no enabled channel
            SyncRunFailedError: If every attempted channel failed
            SyncCancelledError: If cancellation stopped the run; ``error.result``
                holds what was done before
        """
        enabled = self._enabled_channels(channels)
        if not enabled:
            raise ConfigurationError("At least one enabled channel is required")

        run_date = self.run_date or self.clock().date()
        result = RunResult(run_date=run_date)
        builder = SnapshotBuilder(run_date, clock=self.clock)

        self.observer.emit("info", f"Starting sync of {len(enabled)} channels", {
            "run_date": run_date.isoformat(),
            "channels": len(enabled),
        })

        if self.max_concurrency == 1:
            for channel in enabled:
                await self._process_channel(channel, builder, result)
        else:
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def worker(channel: ChannelConfig):
                async with semaphore:
                    await self._process_channel(channel, builder, result)

            await asyncio.gather(*(worker(channel) for channel in enabled))

        # cancellation counts only when it stopped work
        result.cancelled = bool(result.skipped) or any(
            isinstance(e, SyncCancelledError) for e in result.failed.values()
        )
        result.finish()

        summary = {
            "run_date": run_date.isoformat(),
            "status": result.status.value,
            "succeeded": len(result.succeeded),
            "failed": len(result.failed),
            "skipped": len(result.skipped),
            "records_written": result.records_written,
        }

        if result.cancelled:
            self.observer.emit("warning", "Sync cancelled", summary)
            raise SyncCancelledError(
                f"Sync cancelled; {len(result.skipped)} channels not started",
                context=summary,
                result=result
            )

        if result.all_failed:
            self.observer.emit("error", "Sync failed for every channel", summary)
            raise SyncRunFailedError(
                f"All {len(result.failed)} channels failed",
                result=result,
                context=summary
            )

        self.observer.emit(
            "warning" if result.failed else "info",
            f"Sync completed: {result.status.value}",
            summary
        )
        return result

    async def _process_channel(self, channel: ChannelConfig, builder: SnapshotBuilder, result: RunResult) -> None:
        """Run one channel and record its outcome; never raises SyncException"""
        if self.cancel_event.is_set():
            await result.record_skipped(channel.id)
            return

        try:
            written = await self._sync_channel(channel, builder)

        except SyncException as e:
            await result.record_failure(channel.id, e)
            self.observer.emit("error", f"Channel {channel.id} failed: {e.message}", {
                "channel_id": channel.id,
                "outcome": "failed",
                "error_type": type(e).__name__,
            })
            return

        except Exception as e:
            error = SyncException(
                f"Unexpected error while syncing channel {channel.id}",
                context={"channel_id": channel.id},
                original_exception=e
            )
            await result.record_failure(channel.id, error)
            self.observer.emit("error", f"Channel {channel.id} failed: {e}", {
                "channel_id": channel.id,
                "outcome": "failed",
                "error_type": type(e).__name__,
            })
            return

        await result.record_success(channel.id, written)
        self.observer.emit("info", f"Channel {channel.id} synced", {
            "channel_id": channel.id,
            "outcome": "success",
            "records": written,
        })

    async def _sync_channel(self, channel: ChannelConfig, builder: SnapshotBuilder) -> int:
        """
        Fetch → build → write for one channel.

        Returns:
            Number of snapshot records written
        """
        # --------------------------------------------------
        # PHASE 1: FETCH
        # --------------------------------------------------
        display_name, uploads = await self.client.resolve_uploads_collection(channel.id)
        video_ids = await self.client.list_item_ids(uploads, self.max_results_per_channel)
        items = await self.client.fetch_item_details(video_ids) if video_ids else []

        # --------------------------------------------------
        # PHASE 2: BUILD
        # --------------------------------------------------
        records = builder.build_many(channel.id, display_name or channel.name, items)

        # --------------------------------------------------
        # PHASE 3: WRITE
        # --------------------------------------------------
        return await self.sink.write(records)

    @staticmethod
    def _enabled_channels(channels: Sequence[Union[ChannelConfig, str]]) -> List[ChannelConfig]:
        enabled = []
        for channel in channels:
            if isinstance(channel, str):
                channel = ChannelConfig(id=channel)
            if channel.enabled:
                enabled.append(channel)
        return enabled
