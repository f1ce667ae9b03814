"""Render service models."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chartrender.config.constants import (
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    MAX_DIMENSION,
    MIN_DIMENSION,
    ChartType,
    SeriesType,
    Theme,
)
from chartrender.config.themes import default_background


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Point(_FrozenModel):
    """A scatter/bubble data point."""

    x: float
    y: float
    r: float | None = None


class Dataset(_FrozenModel):
    """One data series of a chart."""

    label: str
    data: list[float | Point]
    background_color: str | list[str] | None = Field(default=None, alias="backgroundColor")
    border_color: str | list[str] | None = Field(default=None, alias="borderColor")
    border_width: int | None = Field(default=None, ge=0, le=10, alias="borderWidth")
    fill: bool | None = None
    series_type: SeriesType | None = Field(default=None, alias="type")


class ChartData(_FrozenModel):
    """Labels and datasets to draw."""

    labels: list[str] = Field(default_factory=list)
    datasets: list[Dataset] = Field(min_length=1)

    def canonical(self) -> dict[str, Any]:
        """JSON-ready form with wire names and unset fields dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RenderOptions(_FrozenModel):
    """Presentation parameters for a render."""

    width: int = Field(default=DEFAULT_WIDTH, ge=MIN_DIMENSION, le=MAX_DIMENSION)
    height: int = Field(default=DEFAULT_HEIGHT, ge=MIN_DIMENSION, le=MAX_DIMENSION)
    theme: Theme = Theme.LIGHT
    title: str | None = None
    background_color: str | None = Field(default=None, alias="backgroundColor")

    @property
    def resolved_background(self) -> str:
        return self.background_color or default_background(self.theme)

    def canonical(self) -> dict[str, Any]:
        """JSON-ready form with the background default applied."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        data["backgroundColor"] = self.resolved_background
        return data


class ChartRecord(_FrozenModel):
    """A stored chart as returned by the chart store."""

    chart_hash: str = Field(min_length=1, pattern=r"^[^:]+$")
    chart_type: ChartType
    chart_data: ChartData
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    theme: Theme = Theme.LIGHT
    title: str | None = None
    background_color: str | None = None

    def to_options(self) -> RenderOptions:
        return RenderOptions(
            width=self.width,
            height=self.height,
            theme=self.theme,
            title=self.title,
            background_color=self.background_color,
        )


@dataclass
class RenderResult:
    """Result from a browser render."""

    image: bytes
    width: int
    height: int
    duration_ms: float
    attempts: int = 1

    @property
    def size(self) -> int:
        return len(self.image)
