"""Chart render endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.responses import Response

from chartrender.api.dependencies import get_pipeline
from chartrender.api.models import InvalidationResponse, RenderChartRequest
from chartrender.orchestrator.pipeline import RenderPipeline
from chartrender.services.render.errors import ChartNotFound, RenderError

logger = logging.getLogger(__name__)

router = APIRouter()

PNG_MEDIA_TYPE = "image/png"
CHART_HASH_PATTERN = r"^[^:]+$"


def _render_failure(error: RenderError) -> HTTPException:
    status_code = 503 if error.is_infrastructure else 500
    logger.error("Chart render failed (%s): %s", error.kind.value, error.detail or error.reason)
    return HTTPException(status_code=status_code, detail=error.reason)


@router.post("/render")
async def render_chart(
    request: RenderChartRequest,
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> Response:
    """Render an ad hoc chart to PNG."""
    try:
        image = await pipeline.render(request.chart_type, request.data, request.to_options())
    except RenderError as e:
        raise _render_failure(e) from e
    return Response(content=image, media_type=PNG_MEDIA_TYPE)


@router.get("/{chart_hash}/png")
async def get_chart_png(
    chart_hash: str = Path(..., min_length=1, pattern=CHART_HASH_PATTERN),
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> Response:
    """Render a stored chart to PNG."""
    try:
        image = await pipeline.render_stored_chart(chart_hash)
    except ChartNotFound as e:
        raise HTTPException(status_code=404, detail="Chart not found") from e
    except RenderError as e:
        raise _render_failure(e) from e
    return Response(content=image, media_type=PNG_MEDIA_TYPE)


@router.delete("/{chart_hash}/cache", response_model=InvalidationResponse)
async def invalidate_chart_cache(
    chart_hash: str = Path(..., min_length=1, pattern=CHART_HASH_PATTERN),
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> InvalidationResponse:
    """Drop every cached render of a stored chart."""
    deleted = await pipeline.invalidate_for_chart(chart_hash)
    return InvalidationResponse(deleted=deleted, chart_hash=chart_hash)
