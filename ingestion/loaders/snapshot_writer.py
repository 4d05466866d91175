"""
Write snapshot records to the analytical store (append-only, at-least-once)
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Sequence
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.dialects.postgresql import insert
from core.exceptions import SinkWriteError
from models.video_snapshot import VideoSnapshot
from schemas.snapshot import SnapshotRecord
import logging

logger = logging.getLogger(__name__)


class SnapshotSink(ABC):
    """Destination for snapshot records; deduplication by insert_id is the sink's job"""

    @abstractmethod
    async def write(self, records: Sequence[SnapshotRecord]) -> int:
        """
        Submit records.

        Returns:
            Number of records submitted (0 for empty input, which is a no-op)

        Raises:
            SinkWriteError: If the write failed; nothing is retried here
        """
        pass


class PostgresSnapshotWriter(SnapshotSink):
    """
    Insert snapshots into ``video_snapshots`` with INSERT ... ON CONFLICT DO NOTHING.

    Ensures:
    - Re-running a day does not duplicate rows (unique insert_id)
    - Existing rows are never updated
    - All batches of one write commit together

    Each write opens its own session, so concurrent channel workers can share
    one writer.
    """

    def __init__(self, session_factory: async_sessionmaker, batch_size: int = 500):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.session_factory = session_factory
        self.batch_size = batch_size

    async def write(self, records: Sequence[SnapshotRecord]) -> int:
        if not records:
            return 0

        async with self.session_factory() as session:
            await self._insert(session, records)

        logger.info(f"Submitted {len(records)} snapshots to {VideoSnapshot.__tablename__}")
        return len(records)

    async def _insert(self, session: AsyncSession, records: Sequence[SnapshotRecord]) -> None:
        try:
            for i in range(0, len(records), self.batch_size):
                batch = records[i:i + self.batch_size]
                stmt = insert(VideoSnapshot).values(
                    [record.model_dump() for record in batch]
                ).on_conflict_do_nothing(index_elements=["insert_id"])

                await session.execute(stmt)
                logger.debug(f"Batch {i // self.batch_size + 1}: submitted {len(batch)} snapshots")

            await session.commit()

        except Exception as e:
            await session.rollback()
            raise SinkWriteError(
                "Failed to write snapshots",
                context={
                    "table_name": VideoSnapshot.__tablename__,
                    "records": len(records),
                    "operation": "INSERT"
                },
                original_exception=e
            )


class InMemorySnapshotSink(SnapshotSink):
    """Dict-backed sink for dry runs; keeps the first record per insert_id"""

    def __init__(self):
        self.rows: Dict[str, SnapshotRecord] = {}
        self.write_calls: List[int] = []

    async def write(self, records: Sequence[SnapshotRecord]) -> int:
        if not records:
            return 0

        self.write_calls.append(len(records))
        for record in records:
            self.rows.setdefault(record.insert_id, record)

        return len(records)
