# backend/coworking/schemas/common.py

import re
from typing import Optional

from pydantic import BaseModel

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def check_time(value: Optional[str]) -> Optional[str]:
    """Accept "HH:MM" (seconds are dropped)."""
    if value is None:
        return None
    value = value.strip()[:5]
    if not TIME_PATTERN.match(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return value


def check_time_order(start_time: Optional[str], end_time: Optional[str]) -> None:
    if start_time and end_time and end_time <= start_time:
        raise ValueError("end_time must be after start_time")


class ConflictInfo(BaseModel):
    date: str
    type: str
    description: str
    start_time: str
    end_time: str


class ConflictResponse(BaseModel):
    """Body of a 409 response."""
    message: str
    conflicts: list[ConflictInfo] = []
