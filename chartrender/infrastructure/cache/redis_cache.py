"""Redis-backed render cache."""

import logging
from collections.abc import Callable
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from chartrender.infrastructure.cache.render_cache import RenderCache, is_pattern
from chartrender.services.render.errors import CacheUnavailable

logger = logging.getLogger(__name__)

_SCAN_COUNT = 500
_DELETE_BATCH = 500


class RedisRenderCache(RenderCache):
    """Render cache on a shared Redis connection.

    The connection is created by ``connect`` and owned by the service root.
    When no connection is held, ``ping`` tries to open one so the cache
    recovers on its own after an outage.
    """

    def __init__(
        self,
        redis_url: str,
        default_ttl: int = 3600,
        socket_timeout: float = 2.0,
        client_factory: Callable[[], Redis] | None = None,
    ):
        super().__init__(default_ttl=default_ttl)
        self.redis_url = redis_url
        self._client_factory = client_factory or (
            lambda: Redis.from_url(
                redis_url,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        )
        self._client: Redis | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        if self._client is not None:
            return
        client = self._client_factory()
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            try:
                await client.aclose()
            except (RedisError, OSError) as close_error:
                logger.debug("Error closing failed Redis client: %s", close_error)
            raise CacheUnavailable(f"Failed to connect to Redis: {e}") from e
        self._client = client
        logger.info("Connected to Redis render cache")

    async def disconnect(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.aclose()
            logger.info("Disconnected from Redis render cache")
        except (RedisError, OSError) as e:
            logger.error("Error disconnecting from Redis: %s", e)

    def _require_client(self) -> Redis:
        if self._client is None:
            raise CacheUnavailable("Redis render cache is not connected")
        return self._client

    async def ping(self) -> None:
        if self._client is None:
            await self.connect()
            return
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis PING failed: {e}") from e

    async def fetch(self, key: str) -> bytes | None:
        client = self._require_client()
        try:
            return await client.get(key)
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis GET failed: {e}") from e

    async def store(self, key: str, value: bytes, ttl_seconds: int) -> None:
        client = self._require_client()
        try:
            await client.setex(key, ttl_seconds, value)
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis SETEX failed: {e}") from e
        logger.debug("Cached render: key=%s size=%s ttl=%s", key, len(value), ttl_seconds)

    async def delete_matching(self, key_or_pattern: str) -> int:
        client = self._require_client()
        try:
            if not is_pattern(key_or_pattern):
                return int(await client.delete(key_or_pattern))

            deleted = 0
            batch: list[bytes] = []
            async for key in client.scan_iter(match=key_or_pattern, count=_SCAN_COUNT):
                batch.append(key)
                if len(batch) >= _DELETE_BATCH:
                    deleted += int(await client.delete(*batch))
                    batch = []
            if batch:
                deleted += int(await client.delete(*batch))
            return deleted
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis DEL failed for {key_or_pattern}: {e}") from e

    async def backend_stats(self) -> dict[str, Any]:
        client = self._require_client()
        try:
            info = await client.info()
        except (RedisError, OSError) as e:
            raise CacheUnavailable(f"Redis INFO failed: {e}") from e
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        total = hits + misses
        return {
            "backend": "redis",
            "used_memory": info.get("used_memory_human", "N/A"),
            "connected_clients": info.get("connected_clients", 0),
            "keyspace_hits": hits,
            "keyspace_misses": misses,
            "hit_rate": round(hits / total * 100, 2) if total > 0 else 0.0,
        }
