"""Theme palettes and per-chart-type style dispatch.

The style table is built for every (theme, chart type) pair when the module is
imported; a missing combination fails the import instead of falling back to a
default at render time.
"""

from dataclasses import dataclass
from enum import Enum

from chartrender.config.constants import ChartType, Theme


class ScaleLayout(str, Enum):
    """Axis configuration family."""

    CARTESIAN = "cartesian"
    RADIAL = "radial"
    NONE = "none"


@dataclass(frozen=True)
class ThemeStyle:
    """Colors shared by every chart drawn under a theme."""

    background: str
    text_color: str
    grid_color: str
    palette: tuple[str, ...]

    def series_color(self, index: int) -> str:
        """Palette color for the dataset at ``index``, cycling."""
        return self.palette[index % len(self.palette)]


@dataclass(frozen=True)
class ChartStyle:
    """Resolved style for one (theme, chart type) pair."""

    theme: Theme
    chart_type: ChartType
    chartjs_type: str
    scale_layout: ScaleLayout
    colors: ThemeStyle


LIGHT_PALETTE = ("#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6", "#ec4899")
DARK_PALETTE = ("#60a5fa", "#f87171", "#34d399", "#fbbf24", "#a78bfa", "#f472b6")

_LIGHT = ThemeStyle(background="#ffffff", text_color="#000000", grid_color="#e5e7eb", palette=LIGHT_PALETTE)
_DARK = ThemeStyle(background="#1a1a1a", text_color="#ffffff", grid_color="#374151", palette=DARK_PALETTE)

THEME_STYLES: dict[Theme, ThemeStyle] = {
    Theme.LIGHT: _LIGHT,
    Theme.DARK: _DARK,
    # custom charts bring their own background; everything else follows light
    Theme.CUSTOM: _LIGHT,
}

# chart type -> (Chart.js type, scale layout)
CHART_LAYOUTS: dict[ChartType, tuple[str, ScaleLayout]] = {
    ChartType.LINE: ("line", ScaleLayout.CARTESIAN),
    ChartType.BAR: ("bar", ScaleLayout.CARTESIAN),
    ChartType.PIE: ("pie", ScaleLayout.NONE),
    ChartType.DOUGHNUT: ("doughnut", ScaleLayout.NONE),
    ChartType.RADAR: ("radar", ScaleLayout.RADIAL),
    ChartType.POLAR_AREA: ("polarArea", ScaleLayout.RADIAL),
    ChartType.SCATTER: ("scatter", ScaleLayout.CARTESIAN),
    ChartType.BUBBLE: ("bubble", ScaleLayout.CARTESIAN),
    # mixed charts draw as line; datasets switch to bar through their own type
    ChartType.MIXED: ("line", ScaleLayout.CARTESIAN),
}


def _build_style_table() -> dict[tuple[Theme, ChartType], ChartStyle]:
    missing_themes = set(Theme) - set(THEME_STYLES)
    if missing_themes:
        raise RuntimeError(f"No theme style for: {sorted(t.value for t in missing_themes)}")
    missing_types = set(ChartType) - set(CHART_LAYOUTS)
    if missing_types:
        raise RuntimeError(f"No chart layout for: {sorted(t.value for t in missing_types)}")

    table: dict[tuple[Theme, ChartType], ChartStyle] = {}
    for theme in Theme:
        for chart_type in ChartType:
            chartjs_type, scale_layout = CHART_LAYOUTS[chart_type]
            table[(theme, chart_type)] = ChartStyle(
                theme=theme,
                chart_type=chart_type,
                chartjs_type=chartjs_type,
                scale_layout=scale_layout,
                colors=THEME_STYLES[theme],
            )
    return table


STYLE_TABLE = _build_style_table()


def get_chart_style(theme: Theme, chart_type: ChartType) -> ChartStyle:
    """Look up the style for a theme and chart type."""
    return STYLE_TABLE[(Theme(theme), ChartType(chart_type))]


def default_background(theme: Theme) -> str:
    """Background color used when the caller does not supply one."""
    return THEME_STYLES[Theme(theme)].background
