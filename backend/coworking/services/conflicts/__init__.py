# backend/coworking/services/conflicts/__init__.py
"""
Conflict detection module.

Checker: fail-fast overlap check of one date/window over all sources
Availability: every conflict of a whole rental period
Occupancy: hour and day maps for display (cached in Redis)
"""

from ..rental_config import RentalConfig, get_rental_config
from .overlap import intervals_overlap, times_overlap, time_str_to_minutes, minutes_to_time_str
from .sources import CandidateSource, ConflictCandidate, default_sources
from .checker import ConflictChecker
from .availability import check_availability
from .occupancy import OccupancyAggregator, hourly_occupancy, room_monthly_occupancy
from .invalidator import invalidate_room_occupancy, invalidate_slots

__all__ = [
    "RentalConfig",
    "get_rental_config",
    "intervals_overlap",
    "times_overlap",
    "time_str_to_minutes",
    "minutes_to_time_str",
    "CandidateSource",
    "ConflictCandidate",
    "default_sources",
    "ConflictChecker",
    "check_availability",
    "OccupancyAggregator",
    "hourly_occupancy",
    "room_monthly_occupancy",
    "invalidate_room_occupancy",
    "invalidate_slots",
]
