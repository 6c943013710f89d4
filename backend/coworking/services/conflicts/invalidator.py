# backend/coworking/services/conflicts/invalidator.py
"""
Cache invalidation for occupancy maps.

Triggers:
✓ Application created / updated / cancelled / deleted → its slot dates
✓ Single slot removed → that date
✓ Class session or manual hold written → that date

Cache failures never fail the write that triggered them.
"""

import logging
from typing import Iterable

from redis import Redis
from redis.exceptions import RedisError

from ...redis_client import redis_client
from .redis_store import OccupancyRedisStore

logger = logging.getLogger(__name__)


def invalidate_room_occupancy(
    room_id: int,
    dates: list[str] | None = None,
    redis: Redis | None = None,
) -> int:
    """
    Drop cached occupancy for a room.

    Args:
        room_id: Room ID
        dates: Dates to invalidate, or None for every cached date
        redis: Redis client (defaults to the configured one)

    Returns:
        Number of deleted cache keys
    """
    if redis is None:
        redis = redis_client
    if redis is None:
        return 0
    try:
        return OccupancyRedisStore(redis).delete_days(room_id, dates)
    except RedisError as e:
        logger.warning(f"Failed to invalidate occupancy cache for room {room_id}: {e}")
        return 0


def invalidate_slots(slots: Iterable[tuple[int, str]], redis: Redis | None = None) -> int:
    """
    Invalidate every room/date touched by a write.

    Args:
        slots: (room_id, date) pairs, snapshotted before the commit
    """
    by_room: dict[int, set[str]] = {}
    for room_id, day in slots:
        if room_id is None:
            continue
        by_room.setdefault(room_id, set()).add(day)

    deleted = 0
    for room_id, dates in by_room.items():
        deleted += invalidate_room_occupancy(room_id, sorted(dates), redis=redis)
    return deleted
