"""Normalization helpers.

Parses the raw uptime counter and renders the two display
formats the sinks share (uptime and local timestamp).
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

from beaconrelay._constants import SECONDS_PER_DAY, SECONDS_PER_HOUR, SECONDS_PER_MINUTE, TIMESTAMP_FORMAT


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def format_uptime(uptime_seconds: int) -> str:
    """Render an uptime in seconds as ``"D Tage, H Stunden, M Minuten, S Sekunden"``.

    Raises :class:`ValueError` for negative input.
    """
    if uptime_seconds < 0:
        raise ValueError(f"uptime must not be negative, got {uptime_seconds}")
    days, remainder = divmod(uptime_seconds, SECONDS_PER_DAY)
    hours, remainder = divmod(remainder, SECONDS_PER_HOUR)
    minutes, seconds = divmod(remainder, SECONDS_PER_MINUTE)
    return f"{days} Tage, {hours} Stunden, {minutes} Minuten, {seconds} Sekunden"


def uptime_or_none(value: Any) -> str | None:
    """Format a raw uptime value, or ``None`` when it is absent, unparseable or negative."""
    seconds = safe_int(value)
    if seconds is None or seconds < 0:
        return None
    return format_uptime(seconds)


def local_timestamp(clock: Callable[[], datetime] | None = None) -> str:
    """Current local wall-clock time as ``YYYY-MM-DD HH:MM:SS``."""
    now = clock() if clock is not None else datetime.now()
    if now.tzinfo is not None:
        now = now.astimezone()
    return now.strftime(TIMESTAMP_FORMAT)
