from sqlalchemy import Column, BigInteger, String, Enum, Date, DateTime, Float, Integer, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from datetime import datetime, timezone
import uuid
from models.base import Base, SyncStatus


def _utcnow():
    return datetime.now(timezone.utc)


class SyncRun(Base):
    """
    Tracks metadata for each sync execution.

    Purpose:
    - Audit trail of all runs
    - Per-channel failure detail for debugging
    - Run comparison over time
    """
    __tablename__ = "sync_runs"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    run_id = Column(UUID(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False, index=True)

    # Run metadata
    run_date = Column(Date, nullable=False, index=True)
    status = Column(Enum(SyncStatus), nullable=False, index=True)
    trigger = Column(String(50), nullable=True)  # http, scheduler, cli

    # Timestamps
    started_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Statistics
    channels_total = Column(Integer, default=0)
    channels_succeeded = Column(Integer, default=0)
    channels_failed = Column(Integer, default=0)
    channels_skipped = Column(Integer, default=0)
    records_written = Column(Integer, default=0)

    # Error tracking
    error_message = Column(Text, nullable=True)
    error_details = Column(JSONB, nullable=True)  # channel_id -> error dict

    __table_args__ = (
        Index("idx_sync_run_status_started", "status", "started_at"),
    )
