# backend/coworking/services/conflicts/redis_store.py
"""
Redis cache for per-day occupancy maps.

Key format: occupancy:{kind}:{room_id}:{date}
    kind = "hours" → JSON list of busy grid hours, e.g. [9, 10, 14]
    kind = "day"   → JSON {"type", "description"} or null (free day)

Keys expire after RentalConfig.cache_ttl_seconds and are deleted by the
invalidator whenever slots of that room/date are written.
"""

import json
from typing import Any

from redis import Redis

from ..rental_config import RentalConfig, get_rental_config

HOURS = "hours"
DAY = "day"
KINDS = (HOURS, DAY)


class OccupancyRedisStore:
    """Redis storage wrapper for occupancy maps."""

    KEY_PREFIX = "occupancy"

    def __init__(self, redis: Redis, config: RentalConfig | None = None):
        self.redis = redis
        self.config = config or get_rental_config()

    def _key(self, kind: str, room_id: int, day: str) -> str:
        return f"{self.KEY_PREFIX}:{kind}:{room_id}:{day}"

    # ── Write ────────────────────────────────────────────────────────────

    def store_days(self, kind: str, room_id: int, values: dict[str, Any]) -> None:
        """Batch store one JSON value per date via pipeline."""
        if not values:
            return

        pipe = self.redis.pipeline()
        for day, value in values.items():
            pipe.setex(self._key(kind, room_id, day), self.config.cache_ttl_seconds, json.dumps(value))
        pipe.execute()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_days(self, kind: str, room_id: int, dates: list[str]) -> dict[str, Any]:
        """
        Batch read cached values.

        Returns:
            Dict mapping date → decoded value, only for cache hits.
        """
        if not dates:
            return {}

        raw = self.redis.mget([self._key(kind, room_id, day) for day in dates])
        result = {}
        for day, value in zip(dates, raw):
            if value is None:
                continue
            if isinstance(value, bytes):
                value = value.decode()
            result[day] = json.loads(value)
        return result

    # ── Delete ───────────────────────────────────────────────────────────

    def delete_days(self, room_id: int, dates: list[str] | None = None) -> int:
        """
        Delete cached maps of both kinds.

        Args:
            room_id: Room ID
            dates: Specific dates, or None to delete all for the room.

        Returns:
            Number of deleted keys.
        """
        if dates:
            keys = [self._key(kind, room_id, day) for kind in KINDS for day in dates]
        else:
            keys = []
            for kind in KINDS:
                keys.extend(self.redis.keys(f"{self.KEY_PREFIX}:{kind}:{room_id}:*"))

        if not keys:
            return 0

        return self.redis.delete(*keys)
