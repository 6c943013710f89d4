# backend/coworking/services/conflicts/occupancy.py
"""
Batch occupancy maps for display.

hourly_occupancy: "YYYY-MM-DD_H" → True for every hour of the display grid
that a live candidate overlaps (minute precision, half-open).

room_monthly_occupancy: every date of a range → None (free) or the first
occupying candidate as {"type", "description"}. Rental slots win over
events, events over class sessions, class sessions over manual holds.

Both read all four sources in one query per source and cache per-day
results in Redis when it is configured. Reads are advisory.
"""

import logging
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError
from sqlalchemy.orm import Session

from ...redis_client import redis_client
from ..periods import date_str, dates_in_range, parse_date
from ..rental_config import RentalConfig, get_rental_config
from .overlap import intervals_overlap, time_str_to_minutes
from .redis_store import DAY, HOURS, OccupancyRedisStore
from .sources import CandidateQuery, CandidateSource, default_sources

logger = logging.getLogger(__name__)

DAY_PRIORITY = ("rental", "event", "schedule", "reservation")


def hour_key(day: str, hour: int) -> str:
    return f"{day}_{hour}"


class OccupancyAggregator:
    """Aggregates the candidate sources of one room into display maps."""

    def __init__(
        self,
        sources: Optional[list[CandidateSource]] = None,
        redis: Redis | None = None,
        config: RentalConfig | None = None,
    ):
        self.sources = sources if sources is not None else default_sources()
        self.config = config or get_rental_config()
        self.redis = redis if redis is not None else redis_client

    # ── Cache ────────────────────────────────────────────────────────────

    def _cached(self, kind: str, room_id: int, dates: list[str]) -> dict:
        if self.redis is None:
            return {}
        try:
            return OccupancyRedisStore(self.redis, self.config).get_days(kind, room_id, dates)
        except RedisError as e:
            logger.warning(f"Occupancy cache read failed for room {room_id}: {e}")
            return {}

    def _store(self, kind: str, room_id: int, values: dict) -> None:
        if self.redis is None or not values:
            return
        try:
            OccupancyRedisStore(self.redis, self.config).store_days(kind, room_id, values)
        except RedisError as e:
            logger.warning(f"Occupancy cache write failed for room {room_id}: {e}")

    # ── Hourly ───────────────────────────────────────────────────────────

    def busy_hours(self, db: Session, room_id: int, dates: list[str]) -> dict[str, list[int]]:
        """Busy grid hours per date, computed from the database."""
        busy: dict[str, set[int]] = {day: set() for day in dates}
        if not dates:
            return {}

        query = CandidateQuery(room_ids=(room_id,), dates=tuple(dates))
        for source in self.sources:
            for candidate in source.fetch(db, query):
                start = time_str_to_minutes(candidate.start_time)
                end = time_str_to_minutes(candidate.end_time)
                for hour in self.config.grid_hours:
                    if intervals_overlap(hour * 60, (hour + 1) * 60, start, end):
                        busy[candidate.date].add(hour)

        return {day: sorted(hours) for day, hours in busy.items()}

    def hourly_occupancy(self, db: Session, room_id: int, dates: list[str]) -> dict[str, bool]:
        """
        Occupied hour slots of a room on the given dates.

        Returns:
            {"YYYY-MM-DD_H": True} for busy hours only
        """
        dates = sorted({date_str(d) for d in dates})
        per_day = self._cached(HOURS, room_id, dates)
        missing = [day for day in dates if day not in per_day]
        if missing:
            fresh = self.busy_hours(db, room_id, missing)
            self._store(HOURS, room_id, fresh)
            per_day.update(fresh)

        return {
            hour_key(day, hour): True
            for day in dates
            for hour in per_day.get(day, [])
        }

    # ── Daily ────────────────────────────────────────────────────────────

    def day_map(self, db: Session, room_id: int, dates: list[str]) -> dict[str, Optional[dict]]:
        """First occupying candidate per date, by DAY_PRIORITY."""
        result: dict[str, Optional[dict]] = {day: None for day in dates}
        if not dates:
            return result

        query = CandidateQuery(room_ids=(room_id,), date_from=dates[0], date_to=dates[-1])
        ordered = sorted(
            self.sources,
            key=lambda s: DAY_PRIORITY.index(s.kind) if s.kind in DAY_PRIORITY else len(DAY_PRIORITY),
        )
        for source in ordered:
            for candidate in source.fetch(db, query):
                if candidate.date in result and result[candidate.date] is None:
                    result[candidate.date] = {
                        "type": source.kind,
                        "description": source.day_description(candidate),
                    }
        return result

    def room_monthly_occupancy(
        self,
        db: Session,
        room_id: int,
        start_date: str,
        end_date: str,
    ) -> dict[str, Optional[dict]]:
        """
        Day-level occupancy of a room over an inclusive date range.

        Returns:
            {"YYYY-MM-DD": None | {"type", "description"}} for every date
        """
        start, end = parse_date(start_date), parse_date(end_date)
        if start > end:
            start, end = end, start
        dates = dates_in_range(start, end)

        per_day = self._cached(DAY, room_id, dates)
        missing = [day for day in dates if day not in per_day]
        if missing:
            fresh = self.day_map(db, room_id, missing)
            self._store(DAY, room_id, fresh)
            per_day.update(fresh)

        return {day: per_day.get(day) for day in dates}


def hourly_occupancy(db: Session, room_id: int, dates: list[str]) -> dict[str, bool]:
    return OccupancyAggregator().hourly_occupancy(db, room_id, dates)


def room_monthly_occupancy(
    db: Session,
    room_id: int,
    start_date: str,
    end_date: str,
) -> dict[str, Optional[dict]]:
    return OccupancyAggregator().room_monthly_occupancy(db, room_id, start_date, end_date)
