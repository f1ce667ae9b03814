"""Chart.js configuration and HTML document builders."""

import html
import json
from typing import Any

from chartrender.config.constants import (
    CHART_CANVAS_ID,
    CHART_CONTAINER_ID,
    DEFAULT_BORDER_WIDTH,
    ChartType,
)
from chartrender.config.themes import ChartStyle, ScaleLayout, get_chart_style
from chartrender.services.render.models import ChartData, Dataset, RenderOptions


def resolve_dataset(dataset: Dataset, index: int, style: ChartStyle) -> dict[str, Any]:
    """Fill unset colors and border width from the theme palette."""
    resolved: dict[str, Any] = dataset.model_dump(
        mode="json",
        by_alias=True,
        exclude_none=True,
        exclude={"background_color", "border_color", "border_width"},
    )
    background = dataset.background_color or style.colors.series_color(index)
    resolved["backgroundColor"] = background
    resolved["borderColor"] = dataset.border_color or background
    resolved["borderWidth"] = (
        dataset.border_width if dataset.border_width is not None else DEFAULT_BORDER_WIDTH
    )
    return resolved


def _scale_options(style: ChartStyle) -> dict[str, Any]:
    text_color = style.colors.text_color
    grid_color = style.colors.grid_color
    if style.scale_layout is ScaleLayout.NONE:
        return {}
    if style.scale_layout is ScaleLayout.RADIAL:
        return {
            "r": {
                "ticks": {"color": text_color, "font": {"size": 11}},
                "grid": {"color": grid_color},
                "pointLabels": {"color": text_color, "font": {"size": 12}},
            }
        }
    axis = {
        "ticks": {"color": text_color, "font": {"size": 11}},
        "grid": {"color": grid_color, "borderColor": grid_color},
    }
    return {"x": axis, "y": dict(axis)}


def build_chart_config(
    chart_type: ChartType,
    chart_data: ChartData,
    options: RenderOptions,
) -> dict[str, Any]:
    """Build the Chart.js configuration object with default styling applied."""
    style = get_chart_style(options.theme, chart_type)
    text_color = style.colors.text_color
    config: dict[str, Any] = {
        "type": style.chartjs_type,
        "data": {
            "labels": list(chart_data.labels),
            "datasets": [
                resolve_dataset(dataset, index, style)
                for index, dataset in enumerate(chart_data.datasets)
            ],
        },
        "options": {
            "responsive": True,
            "maintainAspectRatio": False,
            "animation": False,
            "plugins": {
                "legend": {
                    "display": len(chart_data.datasets) > 1,
                    "position": "top",
                    "labels": {"color": text_color, "font": {"size": 12}},
                },
                "title": {
                    "display": bool(options.title),
                    "text": options.title or "",
                    "color": text_color,
                    "font": {"size": 16, "weight": "bold"},
                    "padding": 20,
                },
            },
            "elements": {
                "point": {"radius": 4, "hoverRadius": 6},
                "line": {"tension": 0.3},
            },
        },
    }
    scales = _scale_options(style)
    if scales:
        config["options"]["scales"] = scales
    return config


def _script_json(value: Any) -> str:
    # keep "</script>" inside string values from closing the tag
    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")


def build_document(chart_config: dict[str, Any], options: RenderOptions, chartjs_url: str) -> str:
    """Self-contained HTML page that draws the chart and flags completion."""
    background = html.escape(options.resolved_background, quote=True)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>Chart Generation</title>
  <script src="{html.escape(chartjs_url, quote=True)}"></script>
  <style>
    body {{ margin: 0; padding: 0; background: {background}; }}
    #{CHART_CONTAINER_ID} {{
      width: {options.width}px;
      height: {options.height}px;
      background: {background};
    }}
  </style>
</head>
<body>
  <div id="{CHART_CONTAINER_ID}">
    <canvas id="{CHART_CANVAS_ID}"></canvas>
  </div>
  <script>
    const ctx = document.getElementById('{CHART_CANVAS_ID}').getContext('2d');
    new Chart(ctx, {_script_json(chart_config)});
    document.getElementById('{CHART_CONTAINER_ID}').dataset.rendered = 'true';
  </script>
</body>
</html>
"""
