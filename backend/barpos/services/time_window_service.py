# Overview: Timezone-correct reporting windows derived from a client UTC offset.

"""
Time windows

Clients send their UTC offset in minutes, using the browser convention
(``Date.getTimezoneOffset()``): UTC-5 is ``300``, UTC+5:30 is ``-330``.

Local calendar fields are read by shifting the UTC instant by ``-offset``
and reading the shifted value as if it were UTC. Boundaries are rebuilt from
those fields and shifted back by ``+offset``. Ends always come from the next
calendar day/month/year, so month lengths need no special handling.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional

from barpos.time_utils import parse_iso_datetime, to_naive_utc, to_utc_z, utcnow


WINDOW_TODAY = "today"
WINDOW_WEEK = "week"
WINDOW_MONTH = "month"
WINDOW_YEAR = "year"
WINDOW_KINDS = (WINDOW_TODAY, WINDOW_WEEK, WINDOW_MONTH, WINDOW_YEAR)

# +/-14h covers every legal UTC offset
MAX_OFFSET_MINUTES = 840


@dataclass(frozen=True)
class TimeRange:
    """Half-open UTC interval [start_iso, end_iso)."""

    start_iso: str
    end_iso: str

    def contains(self, iso_value: str) -> bool:
        return self.start_iso <= iso_value < self.end_iso

    def to_dict(self) -> dict:
        return {"start": self.start_iso, "end": self.end_iso}


def clamp_offset(value: Any) -> int:
    """Coerce an offset to whole minutes within +/-840. Garbage becomes 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(minutes):
        return 0
    return max(-MAX_OFFSET_MINUTES, min(MAX_OFFSET_MINUTES, int(minutes)))


def parse_timezone_offset(raw: Optional[str]) -> int:
    """Query-string form of clamp_offset; blank means UTC."""
    if raw is None or not str(raw).strip():
        return 0
    return clamp_offset(str(raw).strip())


def _shift_to_local(instant: datetime, offset_minutes: int) -> datetime:
    return to_naive_utc(instant) - timedelta(minutes=offset_minutes)


def _local_midnight_to_iso(day: date, offset_minutes: int) -> str:
    local_midnight = datetime(day.year, day.month, day.day)
    return to_utc_z(local_midnight + timedelta(minutes=offset_minutes))


def _first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def compute_range(kind: str, offset_minutes: Any = 0, now: Optional[datetime] = None) -> TimeRange:
    """
    UTC bounds of the client's local "today", "week", "month" or "year".

    ``week`` is the seven local days before today plus today itself.
    """
    offset = clamp_offset(offset_minutes)
    local_now = _shift_to_local(now if now is not None else utcnow(), offset)
    local_today = local_now.date()

    if kind == WINDOW_TODAY:
        start_day = local_today
        end_day = local_today + timedelta(days=1)
    elif kind == WINDOW_WEEK:
        start_day = local_today - timedelta(days=7)
        end_day = local_today + timedelta(days=1)
    elif kind == WINDOW_MONTH:
        start_day = local_today.replace(day=1)
        end_day = _first_of_next_month(start_day)
    elif kind == WINDOW_YEAR:
        start_day = date(local_today.year, 1, 1)
        end_day = date(local_today.year + 1, 1, 1)
    else:
        raise ValueError(f"Unknown window kind {kind!r}")

    return TimeRange(
        start_iso=_local_midnight_to_iso(start_day, offset),
        end_iso=_local_midnight_to_iso(end_day, offset),
    )


def to_date(window: TimeRange, now: Optional[datetime] = None) -> TimeRange:
    """Cut a window off at ``now`` (reports cover the period so far)."""
    now_iso = to_utc_z(now if now is not None else utcnow())
    end_iso = min(window.end_iso, now_iso)
    return TimeRange(start_iso=window.start_iso, end_iso=max(window.start_iso, end_iso))


def _local_instant(iso_value: str, offset_minutes: int) -> Optional[datetime]:
    try:
        parsed = parse_iso_datetime(iso_value)
    except ValueError:
        return None
    if parsed is None:
        return None
    return _shift_to_local(parsed, clamp_offset(offset_minutes))


def local_day_label(iso_value: str, offset_minutes: int) -> Optional[str]:
    """``YYYY-MM-DD`` of the local calendar day, or None for an unreadable timestamp."""
    local = _local_instant(iso_value, offset_minutes)
    return local.date().isoformat() if local is not None else None


def local_month_index(iso_value: str, offset_minutes: int) -> Optional[int]:
    """Zero-based local month (0 = January), or None for an unreadable timestamp."""
    local = _local_instant(iso_value, offset_minutes)
    return local.month - 1 if local is not None else None
