"""API request and response models."""

from pydantic import BaseModel, ConfigDict, Field

from chartrender.config.constants import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    MAX_DIMENSION,
    MIN_DIMENSION,
    ChartType,
    Theme,
)
from chartrender.services.render.models import ChartData, RenderOptions


class RenderChartRequest(BaseModel):
    """Ad hoc render request."""

    model_config = ConfigDict(populate_by_name=True)

    chart_type: ChartType = Field(alias="chartType")
    data: ChartData
    width: int = Field(default=DEFAULT_WIDTH, ge=MIN_DIMENSION, le=MAX_DIMENSION)
    height: int = Field(default=DEFAULT_HEIGHT, ge=MIN_DIMENSION, le=MAX_DIMENSION)
    theme: Theme = Theme.LIGHT
    title: str | None = None
    background_color: str | None = Field(default=None, alias="backgroundColor")

    def to_options(self) -> RenderOptions:
        return RenderOptions(
            width=self.width,
            height=self.height,
            theme=self.theme,
            title=self.title,
            background_color=self.background_color,
        )


class InvalidationResponse(BaseModel):
    """Result of a cache invalidation."""

    status: str = "success"
    deleted: int
    chart_hash: str | None = None


class HealthResponse(BaseModel):
    """Response model for health endpoint."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="Application version")
    cache: str = Field(..., description="Render cache status: connected or unavailable")
