"""
Aggregate outcome of one sync run
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from core.exceptions import SyncException
from models.base import SyncStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunResult:
    """
    Per-run aggregate owned by the runner.

    Attributes:
        run_date: Snapshot date (dt) of every record written in this run
        succeeded: Channel ids whose fetch, build and write all completed
        failed: Channel id -> terminal error for channels that failed
        skipped: Channel ids never started because the run was cancelled
        records_written: Snapshot rows accepted by the sink across all channels
    """
    run_date: date
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, SyncException] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    records_written: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None
    cancelled: bool = False
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    async def record_success(self, channel_id: str, records_written: int) -> None:
        async with self._lock:
            self.succeeded.append(channel_id)
            self.records_written += records_written

    async def record_failure(self, channel_id: str, error: SyncException) -> None:
        async with self._lock:
            self.failed[channel_id] = error

    async def record_skipped(self, channel_id: str) -> None:
        async with self._lock:
            self.skipped.append(channel_id)

    def finish(self) -> "RunResult":
        self.finished_at = _utcnow()
        return self

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def all_failed(self) -> bool:
        """True when at least one channel was attempted and none succeeded"""
        return self.attempted > 0 and not self.succeeded

    @property
    def status(self) -> SyncStatus:
        if self.cancelled:
            return SyncStatus.CANCELLED
        if self.all_failed:
            return SyncStatus.FAILED
        if self.failed:
            return SyncStatus.PARTIAL_SUCCESS
        return SyncStatus.SUCCESS

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def error_details(self) -> Dict[str, Dict[str, Any]]:
        return {channel_id: error.to_dict() for channel_id, error in self.failed.items()}

    def to_dict(self) -> Dict[str, Any]:
        """Serializable summary for logs and HTTP responses"""
        return {
            "status": self.status.value,
            "run_date": self.run_date,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "records_written": self.records_written,
            "succeeded": list(self.succeeded),
            "failed": [
                {
                    "channel_id": channel_id,
                    "error_type": type(error).__name__,
                    "message": error.message,
                    "context": error.to_dict()["context"],
                }
                for channel_id, error in self.failed.items()
            ],
            "skipped": list(self.skipped),
        }
