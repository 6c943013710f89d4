# backend/coworking/services/conflicts/overlap.py
"""
Half-open interval overlap over minutes since midnight.

[start, end) ranges: touching endpoints (end1 == start2) do not overlap.
All arithmetic is on integer minutes.
"""

import re

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})")


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid time: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59 or (hours == 24 and minutes):
        raise ValueError(f"Invalid time: {value!r}")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Normalize "9:00" / "09:00:00" to "09:00"."""
    return minutes_to_time_str(time_str_to_minutes(value))


def intervals_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    return start1 < end2 and end1 > start2


def times_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """intervals_overlap for "HH:MM" strings."""
    return intervals_overlap(
        time_str_to_minutes(start1),
        time_str_to_minutes(end1),
        time_str_to_minutes(start2),
        time_str_to_minutes(end2),
    )
