"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from chartrender.api.routers import api_router
from chartrender.config.settings import Settings, get_settings
from chartrender.infrastructure.cache import create_render_cache
from chartrender.infrastructure.database import create_chart_store
from chartrender.infrastructure.logging.logger import setup_logging
from chartrender.orchestrator.pipeline import RenderPipeline
from chartrender.services.render.engine import RenderEngine
from chartrender.services.render.errors import CacheUnavailable

settings = get_settings()

setup_logging(
    level=settings.log_level,
    json_output=not settings.debug,
    silence_noisy_loggers=True,
)

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> RenderPipeline:
    """Wire the cache, engine and chart store into a pipeline."""
    return RenderPipeline(
        settings,
        cache=create_render_cache(settings),
        engine=RenderEngine(settings),
        chart_store=create_chart_store(settings),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown lifecycle."""
    logger.info("Starting %s", settings.app_name)
    pipeline = build_pipeline(settings)

    # The cache is optional at startup; renders fall back to the browser
    # and the cache reconnects on a later probe.
    try:
        await pipeline.cache.connect()
        logger.info("Render cache connected")
    except CacheUnavailable as e:
        logger.warning("Render cache unavailable at startup: %s", e)

    app.state.pipeline = pipeline
    yield
    logger.info("Shutting down %s", settings.app_name)
    app.state.pipeline = None
    await pipeline.close()


app = FastAPI(
    title=settings.app_name,
    description="Renders chart specifications to PNG with a shared render cache",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

app.include_router(api_router, prefix="/api")
