# Overview: Month-end closure cutoff applied to report windows.

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from barpos.time_utils import parse_iso_datetime, to_utc_z
from .storage_reader import RelationMissingError, StorageReader
from .time_window_service import TimeRange


logger = logging.getLogger(__name__)

CLOSURES_RELATION = "month_closures"


def latest_closure_cutoff(reader: StorageReader) -> Optional[str]:
    """ISO instant of the most recent month closure, or None if none exists yet."""
    try:
        row = reader.latest(CLOSURES_RELATION, ("created_at",), "created_at")
    except RelationMissingError:
        logger.info("month_closures not available; reports are not cut off")
        return None
    if row is None:
        return None

    created_at = row.get("created_at")
    if isinstance(created_at, datetime):
        return to_utc_z(created_at)
    if isinstance(created_at, str) and created_at.strip():
        try:
            return to_utc_z(parse_iso_datetime(created_at))
        except ValueError:
            logger.warning("Ignoring unreadable month closure timestamp %r", created_at)
    return None


def apply_cutoff(window: TimeRange, cutoff_iso: Optional[str]) -> TimeRange:
    """Move the window start forward to the cutoff; never past the window end."""
    if not cutoff_iso or cutoff_iso <= window.start_iso:
        return window
    start_iso = cutoff_iso
    return TimeRange(start_iso=start_iso, end_iso=max(start_iso, window.end_iso))
