from __future__ import annotations

from typing import Optional

from barpos.services.time_window_service import (
    WINDOW_MONTH,
    WINDOW_TODAY,
    WINDOW_WEEK,
    TimeRange,
)
from barpos.time_utils import parse_iso_datetime, to_utc_z


DASHBOARD_RANGES = (WINDOW_TODAY, WINDOW_MONTH)
REPORT_RANGES = (WINDOW_TODAY, WINDOW_WEEK, WINDOW_MONTH)


class ValidationError(ValueError):
    """400-level input problem with no safe default."""


def parse_dashboard_range(value: Optional[str]) -> str:
    """``month`` when asked for, anything else is ``today``."""
    candidate = (value or "").strip().lower()
    return candidate if candidate in DASHBOARD_RANGES else WINDOW_TODAY


def parse_report_range(value: Optional[str]) -> str:
    candidate = (value or "").strip().lower()
    return candidate if candidate in REPORT_RANGES else WINDOW_WEEK


def parse_report_window(start: Optional[str], end: Optional[str], default: TimeRange) -> TimeRange:
    """
    Explicit ``start``/``end`` override the named range; either may be left
    out and is then taken from ``default``. There is no sensible default for
    a malformed timestamp, so that is rejected.
    """
    if not (start or "").strip() and not (end or "").strip():
        return default

    try:
        start_dt = parse_iso_datetime(start)
        end_dt = parse_iso_datetime(end)
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 datetimes")

    start_iso = to_utc_z(start_dt) if start_dt else default.start_iso
    end_iso = to_utc_z(end_dt) if end_dt else default.end_iso
    if start_iso > end_iso:
        raise ValidationError("start must not be after end")
    return TimeRange(start_iso=start_iso, end_iso=end_iso)
