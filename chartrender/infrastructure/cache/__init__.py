"""Cache infrastructure module."""

from chartrender.config.settings import Settings
from chartrender.infrastructure.cache.memory_cache import MemoryRenderCache
from chartrender.infrastructure.cache.redis_cache import RedisRenderCache
from chartrender.infrastructure.cache.render_cache import RenderCache

__all__ = [
    "MemoryRenderCache",
    "RedisRenderCache",
    "RenderCache",
    "create_render_cache",
]


def create_render_cache(settings: Settings) -> RenderCache:
    """Redis cache when a URL is configured, otherwise the in-process cache."""
    if settings.redis_url:
        return RedisRenderCache(
            settings.redis_url,
            default_ttl=settings.cache_ttl_seconds,
            socket_timeout=settings.cache_socket_timeout,
        )
    return MemoryRenderCache(
        max_size=settings.memory_cache_max_size,
        default_ttl=settings.cache_ttl_seconds,
    )
