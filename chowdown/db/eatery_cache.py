"""
Chow Service - Redis read-through cache for eatery documents

Every order response needs its eatery's menu, so eatery lookups are cached
for EATERY_CACHE_TTL_SECONDS. Redis failures are logged and treated as a
cache miss; they never fail a lookup.
"""
import logging

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.exceptions import RedisError

from chowdown.core.config import Settings
from chowdown.schemas.eatery import Eatery

logger = logging.getLogger(__name__)

EATERY_CACHE_PREFIX = "eatery:"


class EateryCache:

    def __init__(self, redis: aioredis.Redis, ttl_seconds: int):
        self._redis = redis
        self._ttl = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "EateryCache":
        redis = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
        return cls(redis, settings.EATERY_CACHE_TTL_SECONDS)

    async def ping(self) -> None:
        await self._redis.ping()

    async def close(self) -> None:
        await self._redis.aclose()

    @staticmethod
    def cache_key(storage_key: str) -> str:
        return f"{EATERY_CACHE_PREFIX}{storage_key}"

    async def get(self, storage_key: str) -> Eatery | None:
        try:
            cached = await self._redis.get(self.cache_key(storage_key))
        except RedisError as exc:
            logger.warning("Eatery cache read failed for %s: %s", storage_key, exc)
            return None
        if cached is None:
            logger.debug("Eatery cache miss for %s", storage_key)
            return None
        try:
            return Eatery.model_validate_json(cached)
        except ValidationError:
            logger.warning("Discarding malformed cache entry for %s", storage_key)
            return None

    async def put(self, eatery: Eatery) -> None:
        try:
            await self._redis.setex(
                self.cache_key(eatery.storage_key),
                self._ttl,
                eatery.model_dump_json(by_alias=True),
            )
        except RedisError as exc:
            logger.warning("Eatery cache write failed for %s: %s", eatery.id, exc)

    async def flush(self) -> None:
        try:
            keys = [key async for key in self._redis.scan_iter(match=f"{EATERY_CACHE_PREFIX}*")]
            if keys:
                await self._redis.delete(*keys)
        except RedisError as exc:
            logger.warning("Eatery cache flush failed: %s", exc)
