"""
Transform raw YouTube video resources into daily snapshot records
"""

import json
import re
from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError

from core.exceptions import DataFormatError
from schemas.snapshot import RawItem, SnapshotRecord

SHORT_FORM_MAX_SECONDS = 60

# ISO 8601 durations as used by the API: PT1H2M3S, P1DT2H, P2W, P0D
DURATION_RE = re.compile(
    r"^P(?:(?P<weeks>\d+)W)?(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


def parse_duration(value: Optional[str]) -> int:
    """Seconds in an ISO 8601 duration; 0 when missing or unparseable"""
    if not value:
        return 0

    match = DURATION_RE.match(value.strip().upper())
    if not match:
        return 0

    parts = {k: int(v) if v else 0 for k, v in match.groupdict().items()}
    return (
        parts["weeks"] * 7 * 86400
        + parts["days"] * 86400
        + parts["hours"] * 3600
        + parts["minutes"] * 60
        + parts["seconds"]
    )


def is_short_form(duration_sec: int) -> bool:
    """
    Shorts are at most 60 seconds.

    A zero duration is deliberately not a short: live streams, premieres and
    missing or unparseable durations all parse to 0.
    """
    return 0 < duration_sec <= SHORT_FORM_MAX_SECONDS


def build_insert_id(dt: date, channel_id: str, video_id: str) -> str:
    """Idempotency key: depends on the run date, channel and video only"""
    return f"{dt.isoformat()}:{channel_id}:{video_id}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotBuilder:
    """
    Build SnapshotRecords for one run date.

    Pure apart from ``created_at``, which reads ``clock`` once per record.
    """

    def __init__(self, run_date: date, clock: Callable[[], datetime] = _utcnow):
        self.run_date = run_date
        self.clock = clock

    def build(self, channel_id: str, channel_name: Optional[str], item: RawItem) -> SnapshotRecord:
        """
        Map one RawItem to a SnapshotRecord.

        Raises:
            DataFormatError: If the item cannot form a valid record
        """
        duration_sec = parse_duration(item.duration)

        try:
            return SnapshotRecord(
                dt=self.run_date,
                channel_id=channel_id,
                video_id=item.id,
                title=item.title,
                channel_name=channel_name,
                tags=list(item.tags),
                is_short=is_short_form(duration_sec),
                views=item.view_count,
                likes=item.like_count,
                comments=item.comment_count,
                published_at=item.published_at,
                created_at=self.clock(),
                duration_sec=duration_sec,
                content_details=json.dumps(item.content_details, sort_keys=True, separators=(",", ":")) if item.content_details else None,
                topic_details=list(item.topic_details),
                insert_id=build_insert_id(self.run_date, channel_id, item.id),
            )
        except ValidationError as e:
            raise DataFormatError(
                f"Cannot build snapshot for video {item.id}",
                context={"channel_id": channel_id, "video_id": item.id},
                original_exception=e
            )

    def build_many(self, channel_id: str, channel_name: Optional[str], items: Iterable[RawItem]) -> List[SnapshotRecord]:
        return [self.build(channel_id, channel_name, item) for item in items]
