"""Cache management endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from chartrender.api.dependencies import get_pipeline
from chartrender.api.models import InvalidationResponse
from chartrender.orchestrator.pipeline import RenderPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/stats")
async def get_cache_stats(
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> dict[str, Any]:
    """Return render cache availability and hit/miss statistics."""
    return await pipeline.cache.stats()


@router.delete("/", response_model=InvalidationResponse)
async def clear_cache(
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> InvalidationResponse:
    """Invalidate all cached renders."""
    logger.warning("Render cache cleared via API request")
    deleted = await pipeline.invalidate_all()
    return InvalidationResponse(deleted=deleted)
