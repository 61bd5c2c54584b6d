"""
Redis cache for per-date seat maps.

CACHING STRATEGY
================

What we cache:
  - The availability projection for one date (JSON list of seat statuses)
  - Key pattern: "seats:status:date={YYYY-MM-DD}"

Why:
  - The seat map is the most frequent read: every page load and every date
    change in the picker asks for it
  - It changes only when a booking for that date is created, cancelled or
    expired

Invalidation strategy:
  - On reservation or cancellation: bump the generation for the booking's
    date and delete its seat map
  - On expiry sweep: the same for every date that had bookings expired
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

Generations:
  A reader projects from the database and then stores the result. If a
  write lands in between, the projection it stores is already stale. So
  the reader notes the date's generation ("seats:gen:date={YYYY-MM-DD}")
  before projecting, and the store is a Lua compare-and-set that only
  writes when the generation is still the one it saw.

The reservation engine never reads from this cache. Conflict checks always
hit the database, so a stale entry can only mislabel a seat on the map; the
reservation attempt itself still gets the authoritative answer.

Redis is optional. If it is disabled or unreachable every call here is a
no-op and reads fall through to the database.
"""

import json
import os
from datetime import date
from typing import Iterable, Optional

import redis.asyncio as redis
from app.core.config import Settings
from app.core.metrics import record_cache_operation
from app.core.logging import get_logger

logger = get_logger(__name__)

SCRIPT_PATH = os.path.join(os.path.dirname(__file__), "seat_map_set_if_current.lua")
with open(SCRIPT_PATH, "r") as f:
    SET_IF_CURRENT_SCRIPT = f.read()

# Outlives any projection by a wide margin; an expired counter restarts at 0
GENERATION_TTL = 24 * 3600


def _make_seat_status_key(day: date) -> str:
    return f"seats:status:date={day.isoformat()}"


def _make_generation_key(day: date) -> str:
    return f"seats:gen:date={day.isoformat()}"


class SeatStatusCache:
    """Owns one Redis connection; built and closed by the app lifespan."""

    def __init__(self, client: Optional[redis.Redis], ttl: int):
        self.client = client
        self.ttl = ttl
        self.set_if_current = client.register_script(SET_IF_CURRENT_SCRIPT) if client else None

    @classmethod
    async def connect(cls, settings: Settings) -> "SeatStatusCache":
        if not settings.REDIS_ENABLED:
            return cls(None, settings.REDIS_CACHE_TTL)

        try:
            client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            client = None

        return cls(client, settings.REDIS_CACHE_TTL)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def close(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def get_seat_statuses(self, day: date) -> Optional[list[dict]]:
        if not self.client:
            return None

        key = _make_seat_status_key(day)
        try:
            data = await self.client.get(key)
            record_cache_operation("get", hit=data is not None)
            if data:
                logger.debug("cache_hit", key=key)
                return json.loads(data)
            logger.debug("cache_miss", key=key)
        except Exception as e:
            logger.error("cache_get_error", key=key, error=str(e))

        return None

    async def get_generation(self, day: date) -> Optional[str]:
        """Current generation for ``day``; None when the cache can't be used."""
        if not self.client:
            return None

        key = _make_generation_key(day)
        try:
            return await self.client.get(key) or "0"
        except Exception as e:
            logger.error("cache_generation_error", key=key, error=str(e))
            return None

    async def set_seat_statuses(self, day: date, statuses: list[dict], generation: str) -> bool:
        """
        Store the seat map for ``day`` unless it was invalidated after
        ``generation`` was read. Returns whether the entry was written.
        """
        if not self.client:
            return False

        key = _make_seat_status_key(day)
        try:
            stored = await self.set_if_current(
                keys=[_make_generation_key(day), key],
                args=[generation, self.ttl, json.dumps(statuses, default=str)],
            )
        except Exception as e:
            logger.error("cache_set_error", key=key, error=str(e))
            return False

        # A miss here means the projection went stale before it was stored
        record_cache_operation("set", hit=bool(stored))
        if stored:
            logger.debug("cache_set", key=key, ttl=self.ttl)
        else:
            logger.debug("cache_set_skipped_stale", key=key, generation=generation)
        return bool(stored)

    async def invalidate(self, days: Iterable[date]) -> None:
        if not self.client:
            return

        days = set(days)
        if not days:
            return
        try:
            async with self.client.pipeline(transaction=True) as pipe:
                for day in days:
                    generation_key = _make_generation_key(day)
                    pipe.incr(generation_key)
                    pipe.expire(generation_key, GENERATION_TTL)
                pipe.delete(*[_make_seat_status_key(day) for day in days])
                results = await pipe.execute()
            logger.info("cache_invalidated", keys_deleted=results[-1], dates=len(days))
        except Exception as e:
            logger.error("cache_invalidation_error", error=str(e))

    async def stats(self) -> dict:
        """Redis cache statistics for the health endpoint."""
        if not self.client:
            return {"status": "disabled"}

        try:
            info = await self.client.info("stats")
            hits = info.get("keyspace_hits", 0)
            misses = info.get("keyspace_misses", 0)
            return {
                "status": "connected",
                "hits": hits,
                "misses": misses,
                "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            }
        except Exception as e:
            return {"status": "error", "error": str(e)}
