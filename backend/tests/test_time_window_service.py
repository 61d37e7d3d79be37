from datetime import datetime, timedelta

import pytest

from barpos.services.time_window_service import (
    TimeRange,
    clamp_offset,
    compute_range,
    local_day_label,
    local_month_index,
    parse_timezone_offset,
    to_date,
)
from barpos.time_utils import parse_iso_datetime


class TestOffsetParsing:
    @pytest.mark.parametrize("raw, expected", [
        (300, 300),
        ("-330", -330),
        ("-90.7", -90),
        (1000, 840),
        (-5000, -840),
        ("abc", 0),
        (None, 0),
        (float("inf"), 0),
        ("nan", 0),
        (True, 0),
    ])
    def test_clamp_offset(self, raw, expected):
        assert clamp_offset(raw) == expected

    def test_blank_query_value_means_utc(self):
        assert parse_timezone_offset(None) == 0
        assert parse_timezone_offset("   ") == 0
        assert parse_timezone_offset(" 120 ") == 120


class TestComputeRange:
    def test_today_west_of_utc_crosses_midnight(self):
        # 04:30Z is 23:30 the previous evening at UTC-5
        window = compute_range("today", 300, datetime(2024, 1, 1, 4, 30))
        assert window == TimeRange("2023-12-31T05:00:00.000Z", "2024-01-01T05:00:00.000Z")

    def test_month_east_of_utc_on_leap_february(self):
        # 20:00Z on Jan 31 is already 01:30 on Feb 1 at UTC+5:30
        window = compute_range("month", -330, datetime(2024, 1, 31, 20, 0))
        assert window == TimeRange("2024-01-31T18:30:00.000Z", "2024-02-29T18:30:00.000Z")

    def test_december_rolls_into_next_year(self):
        window = compute_range("month", 0, datetime(2023, 12, 15))
        assert window.end_iso == "2024-01-01T00:00:00.000Z"

    def test_year(self):
        window = compute_range("year", 0, datetime(2024, 6, 15, 9, 0))
        assert window == TimeRange("2024-01-01T00:00:00.000Z", "2025-01-01T00:00:00.000Z")

    def test_week_covers_seven_days_before_today(self):
        window = compute_range("week", 0, datetime(2024, 3, 10, 12, 0))
        assert window == TimeRange("2024-03-03T00:00:00.000Z", "2024-03-11T00:00:00.000Z")

    def test_out_of_range_offset_is_clamped(self):
        assert compute_range("today", 5000, datetime(2024, 1, 1)) == compute_range("today", 840, datetime(2024, 1, 1))

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            compute_range("fortnight", 0, datetime(2024, 1, 1))

    @pytest.mark.parametrize("offset", [-840, -570, -330, -60, 0, 45, 300, 599, 840])
    def test_today_spans_exactly_one_day(self, offset):
        window = compute_range("today", offset, datetime(2024, 2, 29, 23, 59, 59))
        start = parse_iso_datetime(window.start_iso)
        end = parse_iso_datetime(window.end_iso)
        assert end - start == timedelta(days=1)

    @pytest.mark.parametrize("kind", ["today", "week", "month", "year"])
    @pytest.mark.parametrize("offset", [-600, 0, 300])
    def test_recomputing_from_inside_the_window_is_stable(self, kind, offset):
        window = compute_range(kind, offset, datetime(2024, 7, 4, 15, 20))
        start = parse_iso_datetime(window.start_iso)
        last_ms = parse_iso_datetime(window.end_iso) - timedelta(milliseconds=1)

        if kind != "week":
            assert compute_range(kind, offset, start) == window
        assert compute_range(kind, offset, last_ms) == window

    def test_start_never_after_end(self):
        for hour in range(0, 24, 5):
            window = compute_range("today", -840, datetime(2024, 12, 31, hour))
            assert window.start_iso <= window.end_iso


class TestToDate:
    def test_cuts_end_at_now(self):
        now = datetime(2024, 5, 10, 8, 15, 30, 250000)
        window = to_date(compute_range("month", 0, now), now)
        assert window.start_iso == "2024-05-01T00:00:00.000Z"
        assert window.end_iso == "2024-05-10T08:15:30.250Z"

    def test_past_window_keeps_its_end(self):
        window = TimeRange("2024-01-01T00:00:00.000Z", "2024-02-01T00:00:00.000Z")
        assert to_date(window, datetime(2024, 5, 1)) == window


class TestLocalLabels:
    def test_day_label_shifts_west(self):
        assert local_day_label("2024-01-01T04:30:00Z", 300) == "2023-12-31"
        assert local_day_label("2024-01-01T04:30:00Z", 0) == "2024-01-01"

    def test_month_index_shifts_east(self):
        assert local_month_index("2024-01-31T20:00:00.000Z", -330) == 1
        assert local_month_index("2024-01-31T20:00:00.000Z", 0) == 0

    def test_unreadable_timestamps(self):
        assert local_day_label("", 0) is None
        assert local_month_index("yesterday", 0) is None
