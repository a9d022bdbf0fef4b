# Copyright (c) Syntropy Systems
"""Split a number of seconds into days, hours, minutes and seconds."""
from __future__ import annotations

import math
from typing import NamedTuple

SECONDS_PER_MINUTE = 60
MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24


class Duration(NamedTuple):
    """Whole-unit breakdown of an elapsed time."""

    days: int
    hours: int
    minutes: int
    seconds: int


def decompose_duration(total_seconds: float) -> Duration:
    """Break ``total_seconds`` into whole units, truncating with floor."""
    minutes = math.floor(total_seconds / SECONDS_PER_MINUTE)
    hours = math.floor(minutes / MINUTES_PER_HOUR)
    days = math.floor(hours / HOURS_PER_DAY)
    return Duration(
        days=days,
        hours=hours % HOURS_PER_DAY,
        minutes=minutes % MINUTES_PER_HOUR,
        seconds=math.floor(total_seconds % SECONDS_PER_MINUTE),
    )


def format_duration(total_seconds: float | None) -> str:
    """Format seconds as ``1d 1h 1m 5s``, or ``-`` when unknown."""
    if total_seconds is None:
        return "-"

    duration = decompose_duration(total_seconds)
    parts = [
        f"{value}{unit}"
        for value, unit in zip(duration, ("d", "h", "m", "s"))
        if value
    ]
    return " ".join(parts) if parts else "0s"
