"""Render-and-cache pipeline."""

import logging
import time

from chartrender.config.constants import ChartType
from chartrender.config.settings import Settings
from chartrender.infrastructure.cache.render_cache import RenderCache
from chartrender.infrastructure.database.chart_store import ChartStore
from chartrender.orchestrator.single_flight import SingleFlight
from chartrender.services.render.engine import RenderEngine
from chartrender.services.render.errors import CacheUnavailable, ChartNotFound
from chartrender.services.render.fingerprint import all_pattern, chart_pattern, derive_key
from chartrender.services.render.models import ChartData, RenderOptions

logger = logging.getLogger(__name__)


class RenderPipeline:
    """Serves chart PNGs from the cache, rendering in the browser on a miss.

    Cache problems never fail a request: a failed cache call triggers one
    reconnect and the request continues without the cache.
    """

    def __init__(
        self,
        settings: Settings,
        cache: RenderCache,
        engine: RenderEngine,
        chart_store: ChartStore | None = None,
    ):
        """Initialize pipeline with its collaborators."""
        self.settings = settings
        self.cache = cache
        self.engine = engine
        self.chart_store = chart_store
        self.key_prefix = settings.cache_key_prefix
        self.ttl_seconds = settings.cache_ttl_seconds
        self._single_flight: SingleFlight[bytes] | None = (
            SingleFlight() if settings.render_single_flight else None
        )

    async def close(self) -> None:
        """Release the cache connection."""
        await self.cache.disconnect()
        logger.info("Render pipeline resources closed")

    async def __aenter__(self) -> "RenderPipeline":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def render(
        self,
        chart_type: ChartType,
        chart_data: ChartData,
        options: RenderOptions | None = None,
        *,
        chart_id: str | None = None,
    ) -> bytes:
        """Return PNG bytes for a chart, from cache when possible.

        Raises:
            RenderError: If the cache had no entry and the browser render failed
        """
        chart_type = ChartType(chart_type)
        options = options or RenderOptions()
        key = derive_key(chart_type, chart_data, options, chart_id=chart_id, prefix=self.key_prefix)

        cached = await self._lookup(key)
        if cached is not None:
            logger.info("Chart served from cache: type=%s key=%s", chart_type.value, key)
            return cached

        if self._single_flight is not None:
            return await self._single_flight.run(
                key, lambda: self._render_and_store(key, chart_type, chart_data, options)
            )
        return await self._render_and_store(key, chart_type, chart_data, options)

    async def render_stored_chart(self, chart_hash: str) -> bytes:
        """Render a stored chart by its hash.

        Raises:
            ChartNotFound: If the store has no such chart
            RenderError: If rendering failed
        """
        if self.chart_store is None:
            raise ChartNotFound(chart_hash)
        record = await self.chart_store.get_chart_by_hash(chart_hash)
        if record is None:
            raise ChartNotFound(chart_hash)
        return await self.render(
            record.chart_type,
            record.chart_data,
            record.to_options(),
            chart_id=record.chart_hash,
        )

    async def invalidate_for_chart(self, chart_hash: str) -> int:
        """Forget every cached size/theme variant of a stored chart."""
        deleted = await self.cache.invalidate(chart_pattern(chart_hash, prefix=self.key_prefix))
        logger.info("Invalidated chart cache: chart=%s deleted=%s", chart_hash, deleted)
        return deleted

    async def invalidate_all(self) -> int:
        """Flush every cached render."""
        deleted = await self.cache.invalidate(all_pattern(prefix=self.key_prefix))
        logger.warning("All chart renders invalidated: deleted=%s", deleted)
        return deleted

    async def _lookup(self, key: str) -> bytes | None:
        if not await self.cache.probe():
            logger.warning("Render cache is not available, generating new chart without cache")
            return None
        try:
            return await self.cache.fetch(key)
        except CacheUnavailable as e:
            logger.warning("Cache retrieval failed, generating new chart: %s", e)
            await self.cache.reconnect()
            return None

    async def _render_and_store(
        self,
        key: str,
        chart_type: ChartType,
        chart_data: ChartData,
        options: RenderOptions,
    ) -> bytes:
        start = time.perf_counter()
        result = await self.engine.render(chart_type, chart_data, options)
        await self._store(key, result.image)
        logger.info(
            "Chart generated: type=%s size=%s render_ms=%.1f total_ms=%.1f",
            chart_type.value,
            result.size,
            result.duration_ms,
            (time.perf_counter() - start) * 1000,
        )
        return result.image

    async def _store(self, key: str, image: bytes) -> None:
        if not await self.cache.probe():
            logger.warning("Render cache is not available, skipping cache storage")
            return
        try:
            await self.cache.store(key, image, self.ttl_seconds)
        except CacheUnavailable as e:
            logger.warning("Failed to cache chart: %s", e)
            if await self.cache.reconnect():
                await self.cache.set(key, image, self.ttl_seconds)
