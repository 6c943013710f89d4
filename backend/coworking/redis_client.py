# backend/coworking/redis_client.py

from redis import Redis

from .config import settings


def _make_client() -> Redis | None:
    if not settings.redis_url:
        return None
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=2.0,
    )


# None when Redis is not configured: events are dropped and occupancy is
# computed without a cache.
redis_client = _make_client()
