"""
Pydantic schemas for channels, raw API items and snapshot records
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import date, datetime


class ChannelConfig(BaseModel):
    """A configured channel to synchronize"""
    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    enabled: bool = True

    @field_validator("id")
    @classmethod
    def strip_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Channel id cannot be empty")
        return v

    model_config = ConfigDict(frozen=True)


class RawItem(BaseModel):
    """
    One video as returned by ``videos.list`` (snippet, statistics,
    contentDetails, topicDetails parts), flattened.

    Statistics arrive as decimal strings and may be missing entirely when the
    owner hides them; missing counts become 0.
    """
    id: str = Field(..., min_length=1)
    title: str = ""
    tags: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    duration: Optional[str] = None
    view_count: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    comment_count: int = Field(default=0, ge=0)
    content_details: Dict[str, Any] = Field(default_factory=dict)
    topic_details: List[str] = Field(default_factory=list)

    @field_validator("view_count", "like_count", "comment_count", mode="before")
    @classmethod
    def default_missing_counts(cls, v):
        if v is None or v == "":
            return 0
        return v

    @field_validator("tags", "topic_details", mode="before")
    @classmethod
    def clean_string_list(cls, v):
        """Ensure a list of non-empty strings"""
        if v is None:
            return []
        if isinstance(v, list):
            return [str(t) for t in v if str(t).strip()]
        return []

    @classmethod
    def from_api_item(cls, item: Dict[str, Any]) -> "RawItem":
        """Build from a raw ``videos.list`` resource"""
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        content = item.get("contentDetails") or {}
        topics = item.get("topicDetails") or {}

        return cls(
            id=item.get("id", ""),
            title=snippet.get("title", ""),
            tags=snippet.get("tags"),
            published_at=snippet.get("publishedAt"),
            duration=content.get("duration"),
            view_count=statistics.get("viewCount"),
            like_count=statistics.get("likeCount"),
            comment_count=statistics.get("commentCount"),
            content_details=content,
            topic_details=topics.get("topicCategories"),
        )


class SnapshotRecord(BaseModel):
    """
    One row of the append-only snapshot table.

    ``(dt, channel_id, video_id)`` identifies the intended row for a run
    day and ``insert_id`` is derived from exactly those three fields, so the
    store can drop re-submitted rows.
    """
    dt: date
    channel_id: str = Field(..., min_length=1)
    video_id: str = Field(..., min_length=1)
    title: str = ""
    channel_name: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_short: bool = False
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    published_at: Optional[datetime] = None
    created_at: datetime
    duration_sec: int = Field(default=0, ge=0)
    content_details: Optional[str] = None
    topic_details: List[str] = Field(default_factory=list)
    insert_id: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)
