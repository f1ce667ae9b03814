"""Render cache contract.

Backends implement the strict primitives (``fetch``, ``store``, ``delete_matching``,
``ping``), which raise ``CacheUnavailable``. The public ``get``/``set``/
``invalidate``/``probe`` wrap them and never raise, so a cache failure cannot
fail a render request.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from chartrender.services.render.errors import CacheUnavailable

logger = logging.getLogger(__name__)

_GLOB_CHARS = frozenset("*?[")


def is_pattern(value: str) -> bool:
    return any(ch in _GLOB_CHARS for ch in value)


class RenderCache(ABC):
    """Key/value store for rendered chart bytes."""

    def __init__(self, default_ttl: int = 3600):
        self.default_ttl = default_ttl

    # Lifecycle

    @abstractmethod
    async def connect(self) -> None:
        """Open the backend connection. Raises CacheUnavailable on failure."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the backend connection; never raises."""

    async def reconnect(self) -> bool:
        """Drop and reopen the connection. Returns True when it came back."""
        await self.disconnect()
        try:
            await self.connect()
        except CacheUnavailable as e:
            logger.warning("Failed to reconnect render cache: %s", e)
            return False
        logger.info("Render cache reconnected")
        return True

    # Strict primitives

    @abstractmethod
    async def ping(self) -> None:
        """Raise CacheUnavailable unless the backend answers."""

    @abstractmethod
    async def fetch(self, key: str) -> bytes | None:
        """Read a value. Raises CacheUnavailable on backend errors."""

    @abstractmethod
    async def store(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Write a value with a TTL. Raises CacheUnavailable on backend errors."""

    @abstractmethod
    async def delete_matching(self, key_or_pattern: str) -> int:
        """Delete one key or every key matching a glob. Raises CacheUnavailable."""

    @abstractmethod
    async def backend_stats(self) -> dict[str, Any]:
        """Backend-specific statistics. Raises CacheUnavailable."""

    # Absorbing operations

    async def probe(self) -> bool:
        """Cheap liveness check; False on any failure."""
        try:
            await self.ping()
            return True
        except Exception as e:
            logger.debug("Render cache probe failed: %s", e)
            return False

    async def get(self, key: str) -> bytes | None:
        try:
            return await self.fetch(key)
        except CacheUnavailable as e:
            logger.error("Cache get error for key %s: %s", key, e)
            return None

    async def set(self, key: str, value: bytes, ttl_seconds: int | None = None) -> bool:
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        try:
            await self.store(key, value, ttl)
            return True
        except CacheUnavailable as e:
            logger.error("Cache set error for key %s: %s", key, e)
            return False

    async def invalidate(self, key_or_pattern: str) -> int:
        try:
            deleted = await self.delete_matching(key_or_pattern)
        except CacheUnavailable as e:
            logger.error("Cache invalidate error for %s: %s", key_or_pattern, e)
            return 0
        logger.info("Cache invalidated: pattern=%s deleted=%s", key_or_pattern, deleted)
        return deleted

    async def stats(self) -> dict[str, Any]:
        if not await self.probe():
            return {"enabled": False}
        try:
            return {"enabled": True, **await self.backend_stats()}
        except CacheUnavailable as e:
            logger.error("Cache stats error: %s", e)
            return {"enabled": True, "error": str(e)}
