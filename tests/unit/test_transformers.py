"""
Unit tests for snapshot building
"""

import json
import pytest
from datetime import date, datetime, timezone

from core.exceptions import DataFormatError
from ingestion.transformers.snapshot_builder import (
    SnapshotBuilder,
    build_insert_id,
    is_short_form,
    parse_duration,
)
from schemas.snapshot import RawItem

RUN_DATE = date(2024, 1, 15)


class TestParseDuration:

    @pytest.mark.parametrize("value, expected", [
        ("PT45S", 45),
        ("PT1M1S", 61),
        ("PT4M13S", 253),
        ("PT1H2M3S", 3723),
        ("P1DT2H", 93600),
        ("P2W", 1209600),
        ("P0D", 0),
        ("pt10s", 10),
    ])
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", [None, "", "45", "PT", "1:30", "PTXS"])
    def test_missing_or_invalid_is_zero(self, value):
        assert parse_duration(value) == 0


class TestShortForm:

    @pytest.mark.parametrize("seconds, expected", [
        (1, True),
        (45, True),
        (60, True),
        (61, False),
        (3600, False),
        (0, False),
    ])
    def test_boundary(self, seconds, expected):
        assert is_short_form(seconds) is expected


class TestSnapshotBuilder:

    def test_short_video(self, make_raw_item, fixed_clock):
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        record = builder.build("UCabc", "ABC", make_raw_item("v1", duration="PT45S"))

        assert record.duration_sec == 45
        assert record.is_short is True

    def test_sixty_one_seconds_is_not_short(self, make_raw_item, fixed_clock):
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        record = builder.build("UCabc", "ABC", make_raw_item("v1", duration="PT1M1S"))

        assert record.duration_sec == 61
        assert record.is_short is False

    def test_missing_duration(self, make_raw_item, fixed_clock):
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        record = builder.build("UCabc", "ABC", make_raw_item("v1", duration=None))

        assert record.duration_sec == 0
        assert record.is_short is False

    def test_zero_length_live_stream_is_not_short(self, make_raw_item, fixed_clock):
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        record = builder.build("UCabc", "ABC", make_raw_item("live1", duration="P0D"))

        assert record.duration_sec == 0
        assert record.is_short is False

    def test_maps_fields(self, make_raw_item, fixed_clock):
        item = make_raw_item(
            "v1",
            title="Morning update",
            views="1200",
            likes="34",
            comments="5",
            tags=["news"],
            topics=["https://en.wikipedia.org/wiki/Politics"],
        )
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        record = builder.build("UCabc", "ABC News", item)

        assert record.dt == RUN_DATE
        assert record.channel_id == "UCabc"
        assert record.video_id == "v1"
        assert record.title == "Morning update"
        assert record.channel_name == "ABC News"
        assert (record.views, record.likes, record.comments) == (1200, 34, 5)
        assert record.tags == ["news"]
        assert record.topic_details == ["https://en.wikipedia.org/wiki/Politics"]
        assert record.published_at == datetime(2024, 1, 10, 8, 30, tzinfo=timezone.utc)
        assert record.created_at == fixed_clock()

    def test_missing_statistics_are_zero(self, fixed_clock):
        item = RawItem.from_api_item({"id": "v1", "snippet": {"title": "Hidden"}})
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        record = builder.build("UCabc", None, item)

        assert (record.views, record.likes, record.comments) == (0, 0, 0)
        assert record.tags == []
        assert record.content_details is None

    def test_content_details_serialized_as_json(self, make_raw_item, fixed_clock):
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        record = builder.build("UCabc", "ABC", make_raw_item("v1", duration="PT45S"))

        assert json.loads(record.content_details) == {
            "caption": "false",
            "definition": "hd",
            "duration": "PT45S",
        }

    def test_insert_id_ignores_clock(self, make_raw_item):
        item = make_raw_item("v1")
        first = SnapshotBuilder(RUN_DATE, clock=lambda: datetime(2024, 1, 15, 3, 0, tzinfo=timezone.utc))
        second = SnapshotBuilder(RUN_DATE, clock=lambda: datetime(2024, 1, 15, 23, 59, tzinfo=timezone.utc))

        a = first.build("UCabc", "ABC", item)
        b = second.build("UCabc", "ABC renamed", item)

        assert a.insert_id == b.insert_id == build_insert_id(RUN_DATE, "UCabc", "v1")
        assert a.created_at != b.created_at

    def test_insert_id_differs_by_day(self, make_raw_item, fixed_clock):
        item = make_raw_item("v1")

        today = SnapshotBuilder(RUN_DATE, clock=fixed_clock).build("UCabc", "ABC", item)
        tomorrow = SnapshotBuilder(date(2024, 1, 16), clock=fixed_clock).build("UCabc", "ABC", item)

        assert today.insert_id != tomorrow.insert_id

    def test_build_many_keeps_order(self, make_raw_item, fixed_clock):
        items = [make_raw_item(v) for v in ("a", "b", "c")]
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        records = builder.build_many("UCabc", "ABC", items)

        assert [r.video_id for r in records] == ["a", "b", "c"]
        assert {r.dt for r in records} == {RUN_DATE}

    def test_invalid_record_raises_data_format_error(self, make_raw_item, fixed_clock):
        builder = SnapshotBuilder(RUN_DATE, clock=fixed_clock)

        with pytest.raises(DataFormatError):
            builder.build("", "ABC", make_raw_item("v1"))
