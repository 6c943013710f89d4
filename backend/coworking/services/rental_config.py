# backend/coworking/services/rental_config.py
"""
Configuration for conflict checking and occupancy.
"""

from dataclasses import dataclass
from functools import lru_cache

from ..config import settings


@dataclass(frozen=True)
class RentalConfig:
    """
    Configuration for the rental calendar.

    Attributes:
        max_rental_days: Cap on day-by-day period expansion
        first_hour: First hour of the hourly occupancy grid
        last_hour: Last hour of the hourly occupancy grid (inclusive)
        cache_ttl_seconds: Redis TTL for cached occupancy maps
        day_start: Window used for whole-day rentals
        day_end: Window used for whole-day rentals
    """
    max_rental_days: int = 365
    first_hour: int = 9
    last_hour: int = 21
    cache_ttl_seconds: int = 300
    day_start: str = "00:00"
    day_end: str = "23:59"

    def __post_init__(self):
        """Validate configuration."""
        if self.max_rental_days < 1:
            raise ValueError(f"max_rental_days must be positive, got {self.max_rental_days}")
        if not 0 <= self.first_hour <= self.last_hour <= 23:
            raise ValueError(
                f"occupancy grid hours out of range: {self.first_hour}..{self.last_hour}"
            )

    @property
    def grid_hours(self) -> range:
        return range(self.first_hour, self.last_hour + 1)


@lru_cache
def get_rental_config() -> RentalConfig:
    """Get rental configuration (singleton) built from settings."""
    return RentalConfig(
        max_rental_days=settings.max_rental_days,
        first_hour=settings.occupancy_first_hour,
        last_hour=settings.occupancy_last_hour,
        cache_ttl_seconds=settings.occupancy_cache_ttl_seconds,
    )
