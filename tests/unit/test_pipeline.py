"""Tests for the render-and-cache pipeline."""

import asyncio

import pytest

from chartrender.config.constants import ChartType, Theme
from chartrender.config.settings import Settings
from chartrender.infrastructure.cache import MemoryRenderCache, RedisRenderCache
from chartrender.infrastructure.database.chart_store import InMemoryChartStore
from chartrender.orchestrator.pipeline import RenderPipeline
from chartrender.services.render.errors import ChartNotFound, GenerationError, TargetClosed
from chartrender.services.render.fingerprint import derive_key
from chartrender.services.render.models import ChartRecord, RenderOptions


def _redis_cache(*clients):
    remaining = list(clients)
    return RedisRenderCache("redis://test", client_factory=lambda: remaining.pop(0))


@pytest.fixture
def memory_cache():
    return MemoryRenderCache(max_size=32, default_ttl=60)


@pytest.fixture
def chart_store(sales_data):
    return InMemoryChartStore([
        ChartRecord(
            chart_hash="abc123",
            chart_type=ChartType.BAR,
            chart_data=sales_data,
            width=640,
            height=480,
            title="Sales",
        ),
        ChartRecord(chart_hash="xyz789", chart_type=ChartType.LINE, chart_data=sales_data),
    ])


# ==========================================
#  Cache short-circuit
# ==========================================


@pytest.mark.asyncio
async def test_second_request_served_from_cache(settings, memory_cache, fake_engine, sales_data, png_bytes):
    engine = fake_engine()
    pipeline = RenderPipeline(settings, memory_cache, engine)

    first = await pipeline.render(ChartType.BAR, sales_data)
    second = await pipeline.render(ChartType.BAR, sales_data, RenderOptions())

    assert first == second == png_bytes
    assert engine.calls == 1
    key = derive_key(ChartType.BAR, sales_data, RenderOptions())
    assert await memory_cache.get(key) == png_bytes


@pytest.mark.asyncio
async def test_different_options_render_separately(settings, memory_cache, fake_engine, sales_data):
    engine = fake_engine()
    pipeline = RenderPipeline(settings, memory_cache, engine)

    await pipeline.render(ChartType.BAR, sales_data)
    await pipeline.render(ChartType.BAR, sales_data, RenderOptions(theme=Theme.DARK))
    await pipeline.render(ChartType.LINE, sales_data)

    assert engine.calls == 3


@pytest.mark.asyncio
async def test_render_failure_is_not_cached(settings, memory_cache, fake_engine, sales_data):
    engine = fake_engine(error=GenerationError(reason="Chart generation failed: boom"))
    pipeline = RenderPipeline(settings, memory_cache, engine)

    with pytest.raises(GenerationError):
        await pipeline.render(ChartType.BAR, sales_data)

    stats = await memory_cache.stats()
    assert stats["size"] == 0


@pytest.mark.asyncio
async def test_cache_key_prefix_from_settings(memory_cache, fake_engine, sales_data):
    settings = Settings(redis_url="", cache_key_prefix="renders")
    pipeline = RenderPipeline(settings, memory_cache, fake_engine())
    await pipeline.render(ChartType.BAR, sales_data)
    key = derive_key(ChartType.BAR, sales_data, RenderOptions(), prefix="renders")
    assert await memory_cache.get(key) is not None


# ==========================================
#  Cache failure transparency
# ==========================================


@pytest.mark.asyncio
async def test_unreachable_cache_still_renders(settings, fake_redis, fake_engine, sales_data, png_bytes):
    cache = _redis_cache(*(fake_redis(fail=True) for _ in range(4)))
    engine = fake_engine()
    pipeline = RenderPipeline(settings, cache, engine)

    assert await pipeline.render(ChartType.BAR, sales_data) == png_bytes
    assert await pipeline.render(ChartType.BAR, sales_data) == png_bytes
    assert engine.calls == 2


@pytest.mark.asyncio
async def test_get_failure_reconnects_and_renders(settings, fake_redis, fake_engine, sales_data, png_bytes):
    broken = fake_redis(fail_on={"GET"})
    healthy = fake_redis()
    cache = _redis_cache(broken, healthy)
    await cache.connect()
    engine = fake_engine()
    pipeline = RenderPipeline(settings, cache, engine)

    assert await pipeline.render(ChartType.BAR, sales_data) == png_bytes

    assert engine.calls == 1
    assert broken.closed == 1
    key = derive_key(ChartType.BAR, sales_data, RenderOptions())
    assert healthy.data[key] == png_bytes
    assert healthy.ttls[key] == settings.cache_ttl_seconds


@pytest.mark.asyncio
async def test_set_failure_retries_once_after_reconnect(settings, fake_redis, fake_engine, sales_data, png_bytes):
    broken = fake_redis(fail_on={"SETEX"})
    healthy = fake_redis()
    cache = _redis_cache(broken, healthy)
    await cache.connect()
    pipeline = RenderPipeline(settings, cache, fake_engine())

    assert await pipeline.render(ChartType.BAR, sales_data) == png_bytes

    assert broken.commands.count("SETEX") == 1
    assert healthy.commands.count("SETEX") == 1
    assert list(healthy.data.values()) == [png_bytes]


@pytest.mark.asyncio
async def test_set_failure_with_failed_reconnect_still_returns(settings, fake_redis, fake_engine, sales_data, png_bytes):
    broken = fake_redis(fail_on={"SETEX"})
    cache = _redis_cache(broken, fake_redis(fail=True))
    await cache.connect()
    pipeline = RenderPipeline(settings, cache, fake_engine())

    assert await pipeline.render(ChartType.BAR, sales_data) == png_bytes
    assert cache.connected is False


@pytest.mark.asyncio
async def test_close_disconnects_cache(settings, fake_redis, fake_engine):
    client = fake_redis()
    cache = _redis_cache(client)
    await cache.connect()

    async with RenderPipeline(settings, cache, fake_engine()):
        pass

    assert client.closed == 1


# ==========================================
#  Stored charts and invalidation
# ==========================================


@pytest.mark.asyncio
async def test_render_stored_chart(settings, memory_cache, fake_engine, chart_store, sales_data, png_bytes):
    engine = fake_engine()
    pipeline = RenderPipeline(settings, memory_cache, engine, chart_store=chart_store)

    assert await pipeline.render_stored_chart("abc123") == png_bytes
    assert await pipeline.render_stored_chart("abc123") == png_bytes
    assert engine.calls == 1

    options = RenderOptions(width=640, height=480, title="Sales")
    key = derive_key(ChartType.BAR, sales_data, options, chart_id="abc123")
    assert await memory_cache.get(key) == png_bytes


@pytest.mark.asyncio
async def test_render_stored_chart_not_found(settings, memory_cache, fake_engine, chart_store):
    engine = fake_engine()
    pipeline = RenderPipeline(settings, memory_cache, engine, chart_store=chart_store)

    with pytest.raises(ChartNotFound) as exc_info:
        await pipeline.render_stored_chart("missing")
    assert exc_info.value.chart_hash == "missing"
    assert engine.calls == 0

    without_store = RenderPipeline(settings, memory_cache, engine)
    with pytest.raises(ChartNotFound):
        await without_store.render_stored_chart("abc123")


@pytest.mark.asyncio
async def test_invalidate_for_chart_scope(settings, memory_cache, fake_engine, chart_store, sales_data):
    """Only the named chart's variants are dropped."""
    engine = fake_engine()
    pipeline = RenderPipeline(settings, memory_cache, engine, chart_store=chart_store)

    await pipeline.render_stored_chart("abc123")
    await pipeline.render(ChartType.BAR, sales_data, RenderOptions(theme=Theme.DARK), chart_id="abc123")
    await pipeline.render_stored_chart("xyz789")
    await pipeline.render(ChartType.BAR, sales_data)
    assert engine.calls == 4

    assert await pipeline.invalidate_for_chart("abc123") == 2

    await pipeline.render_stored_chart("xyz789")
    await pipeline.render(ChartType.BAR, sales_data)
    assert engine.calls == 4
    await pipeline.render_stored_chart("abc123")
    assert engine.calls == 5


@pytest.mark.asyncio
async def test_invalidate_for_chart_leaves_overlapping_ids(settings, memory_cache, fake_engine, sales_data):
    """Dropping chart 42 keeps chart 1427 and ad hoc renders cached."""
    store = InMemoryChartStore([
        ChartRecord(chart_hash="42", chart_type=ChartType.BAR, chart_data=sales_data),
        ChartRecord(chart_hash="1427", chart_type=ChartType.BAR, chart_data=sales_data),
    ])
    engine = fake_engine()
    pipeline = RenderPipeline(settings, memory_cache, engine, chart_store=store)
    await pipeline.render_stored_chart("42")
    await pipeline.render_stored_chart("1427")
    await pipeline.render(ChartType.BAR, sales_data)

    assert await pipeline.invalidate_for_chart("42") == 1

    await pipeline.render_stored_chart("1427")
    await pipeline.render(ChartType.BAR, sales_data)
    assert engine.calls == 3


@pytest.mark.asyncio
async def test_invalidate_all(settings, memory_cache, fake_engine, chart_store, sales_data):
    engine = fake_engine()
    pipeline = RenderPipeline(settings, memory_cache, engine, chart_store=chart_store)
    await pipeline.render_stored_chart("abc123")
    await pipeline.render(ChartType.PIE, sales_data)

    assert await pipeline.invalidate_all() == 2

    await pipeline.render(ChartType.PIE, sales_data)
    assert engine.calls == 3


@pytest.mark.asyncio
async def test_invalidate_with_unreachable_cache(settings, fake_redis, fake_engine):
    pipeline = RenderPipeline(settings, _redis_cache(fake_redis(fail=True)), fake_engine())
    assert await pipeline.invalidate_for_chart("abc123") == 0


# ==========================================
#  Single flight
# ==========================================


async def _render_concurrently(pipeline, engine, sales_data, count=3):
    tasks = [asyncio.create_task(pipeline.render(ChartType.BAR, sales_data)) for _ in range(count)]
    await asyncio.sleep(0.01)
    engine.gate.set()
    return await asyncio.gather(*tasks, return_exceptions=True)


@pytest.mark.asyncio
async def test_single_flight_collapses_identical_renders(memory_cache, fake_engine, sales_data, png_bytes):
    settings = Settings(redis_url="", render_single_flight=True)
    engine = fake_engine(gate=asyncio.Event())
    pipeline = RenderPipeline(settings, memory_cache, engine)

    results = await _render_concurrently(pipeline, engine, sales_data)

    assert results == [png_bytes] * 3
    assert engine.calls == 1


@pytest.mark.asyncio
async def test_without_single_flight_each_request_renders(settings, memory_cache, fake_engine, sales_data):
    engine = fake_engine(gate=asyncio.Event())
    pipeline = RenderPipeline(settings, memory_cache, engine)

    await _render_concurrently(pipeline, engine, sales_data)

    assert engine.calls == 3


@pytest.mark.asyncio
async def test_single_flight_shares_failure(memory_cache, fake_engine, sales_data):
    settings = Settings(redis_url="", render_single_flight=True)
    engine = fake_engine(error=TargetClosed(), gate=asyncio.Event())
    pipeline = RenderPipeline(settings, memory_cache, engine)

    results = await _render_concurrently(pipeline, engine, sales_data, count=2)

    assert all(isinstance(r, TargetClosed) for r in results)
    assert engine.calls == 1
