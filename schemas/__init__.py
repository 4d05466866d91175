"""
Pydantic schemas for data validation and serialization.

Schemas:
    snapshot: Channel configuration, raw API items and snapshot records
    api: Response models for the sync host endpoints

Usage:
    from schemas.snapshot import ChannelConfig, RawItem, SnapshotRecord
    from schemas.api import SyncRunResponse

Example:
    item = RawItem.from_api_item({
        "id": "dQw4w9WgXcQ",
        "snippet": {"title": "Example", "publishedAt": "2024-01-15T10:00:00Z"},
        "statistics": {"viewCount": "1200"},
        "contentDetails": {"duration": "PT45S"},
    })
    assert item.view_count == 1200
"""

__all__ = [
    "ChannelConfig",
    "RawItem",
    "SnapshotRecord",
    "ChannelFailureInfo",
    "SyncRunResponse",
    "SyncErrorResponse",
    "InfoResponse",
]
