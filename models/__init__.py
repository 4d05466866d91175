"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and the SyncStatus enum
    video_snapshot: Append-only daily video snapshots, deduplicated by insert_id
    sync_run: Audit record of each sync run

Usage:
    from models.video_snapshot import VideoSnapshot
    from models.sync_run import SyncRun
    from models.base import Base, SyncStatus
"""

__all__ = [
    "Base",
    "SyncStatus",
    "VideoSnapshot",
    "SyncRun",
]
