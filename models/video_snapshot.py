from sqlalchemy import Column, BigInteger, String, Boolean, Date, DateTime, Integer, Text, Index
from sqlalchemy.dialects.postgresql import ARRAY
from models.base import Base


class VideoSnapshot(Base):
    """
    Append-only daily snapshot of one video's metadata and statistics.

    Design Decisions:
    - dt is the partition key of the analytical store (one row per video per day)
    - insert_id = "{dt}:{channel_id}:{video_id}" is unique, so a re-run of the
      same day inserts nothing new (INSERT ... ON CONFLICT DO NOTHING)
    - rows are never updated; later days get new rows
    """
    __tablename__ = "video_snapshots"

    id = Column(BigInteger, primary_key=True, autoincrement=True)

    # Identity
    dt = Column(Date, nullable=False, index=True)
    channel_id = Column(String(64), nullable=False)
    video_id = Column(String(64), nullable=False)
    insert_id = Column(String(160), nullable=False)

    # Metadata
    title = Column(Text, nullable=True)
    channel_name = Column(Text, nullable=True)
    tags = Column(ARRAY(Text), nullable=False, default=list)
    is_short = Column(Boolean, nullable=True)

    # Statistics
    views = Column(BigInteger, nullable=True)
    likes = Column(BigInteger, nullable=True)
    comments = Column(BigInteger, nullable=True)

    # Timestamps
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Extra metadata
    duration_sec = Column(Integer, nullable=True)
    content_details = Column(Text, nullable=True)  # JSON string
    topic_details = Column(ARRAY(Text), nullable=False, default=list)

    __table_args__ = (
        Index("idx_snapshot_insert_id", "insert_id", unique=True),
        Index("idx_snapshot_dt_channel_video", "dt", "channel_id", "video_id"),
    )
