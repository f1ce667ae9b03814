"""In-process render cache for single-node and development use."""

from typing import Any

from chartrender.infrastructure.cache.bounded_cache import BoundedCache
from chartrender.infrastructure.cache.render_cache import RenderCache, is_pattern


class MemoryRenderCache(RenderCache):
    """Render cache kept in a BoundedCache; always available."""

    def __init__(self, max_size: int = 256, default_ttl: int = 3600, cache: BoundedCache[bytes] | None = None):
        super().__init__(default_ttl=default_ttl)
        self._cache: BoundedCache[bytes] = cache or BoundedCache(max_size=max_size, ttl_seconds=default_ttl)

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        return None

    async def ping(self) -> None:
        return None

    async def fetch(self, key: str) -> bytes | None:
        return self._cache.get(key)

    async def store(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self._cache.set(key, value, ttl_seconds)

    async def delete_matching(self, key_or_pattern: str) -> int:
        if is_pattern(key_or_pattern):
            return self._cache.delete_matching(key_or_pattern)
        return int(self._cache.delete(key_or_pattern))

    async def backend_stats(self) -> dict[str, Any]:
        return {"backend": "memory", **self._cache.get_stats()}
