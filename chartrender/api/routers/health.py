"""Health endpoint."""

from fastapi import APIRouter, Depends

from chartrender.api.dependencies import get_pipeline
from chartrender.api.models import HealthResponse
from chartrender.config.settings import get_settings
from chartrender.orchestrator.pipeline import RenderPipeline

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(pipeline: RenderPipeline = Depends(get_pipeline)) -> HealthResponse:
    """Health check.

    The service stays healthy without its cache; renders fall back to the browser.
    """
    cache_status = "connected" if await pipeline.cache.probe() else "unavailable"
    return HealthResponse(status="healthy", version=get_settings().app_version, cache=cache_status)
