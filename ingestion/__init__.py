"""
Channel sync pipeline.

Modules:
    base: MetadataSource interface of the external metadata API
    retry: Backoff policy, error classification and the retry executor
    observer: Structured event sink injected into every component
    result: RunResult aggregate of one run
    runner: SyncRunner orchestrating fetch → build → write per channel
    service: Builds collaborators from settings and runs one sync
    scheduler: APScheduler integration for the daily run

Subpackages:
    extractors: YouTube Data API client (pagination, batching, retries)
    transformers: Snapshot building (duration parsing, idempotency keys)
    loaders: Append-only snapshot sinks

Architecture:
    For each enabled channel, strictly in order:

    1. Fetch - resolve the uploads playlist, page through video ids,
       fetch details in batches of 50, every call retried with backoff
    2. Build - map each video to a SnapshotRecord keyed by (dt, channel, video)
    3. Write - submit the channel's records to the sink in one write

    A channel's failure is recorded in the RunResult and the next channel
    runs. The run fails only when every attempted channel failed.

Usage:
    from ingestion.service import run_sync

    result = await run_sync(trigger="cli")
    print(f"Wrote {result.records_written} snapshots")
"""

__all__ = [
    "MetadataSource",
    "RetryConfig",
    "RetryExecutor",
    "ErrorKind",
    "classify_error",
    "SyncObserver",
    "LoggingObserver",
    "RunResult",
    "SyncRunner",
    "YouTubeMetadataClient",
    "SnapshotBuilder",
    "PostgresSnapshotWriter",
    "InMemorySnapshotSink",
    "run_sync",
]
