"""
Constants, enums, and static values.
"""

from enum import Enum


class ChartType(str, Enum):
    """Chart types accepted by the renderer."""

    LINE = "line"
    BAR = "bar"
    PIE = "pie"
    DOUGHNUT = "doughnut"
    RADAR = "radar"
    POLAR_AREA = "polarArea"
    SCATTER = "scatter"
    BUBBLE = "bubble"
    MIXED = "mixed"


class Theme(str, Enum):
    """Render themes."""

    LIGHT = "light"
    DARK = "dark"
    CUSTOM = "custom"


class SeriesType(str, Enum):
    """Per-dataset type override used by mixed charts."""

    LINE = "line"
    BAR = "bar"


class RenderStage(str, Enum):
    """Stages of a single browser render attempt."""
    INIT = "init"
    LAUNCHING = "launching"
    PAGE_OPEN = "page_open"
    CONTENT_LOADING = "content_loading"
    WAITING_RENDER = "waiting_render"
    CAPTURED = "captured"
    DONE = "done"
    LAUNCH_FAILED = "launch_failed"
    CONTENT_FAILED = "content_failed"
    RENDER_TIMEOUT = "render_timeout"
    CAPTURE_FAILED = "capture_failed"


class RenderStageDescription(str, Enum):
    """Render stage descriptions used in stage logs."""
    INIT = "Build the Chart.js config and HTML document"
    LAUNCHING = "Launch an isolated headless browser"
    PAGE_OPEN = "Open a page sized to the chart surface"
    CONTENT_LOADING = "Load the generated chart document"
    WAITING_RENDER = "Wait for the chart canvas to finish drawing"
    CAPTURED = "Capture the chart surface as PNG"


class RenderErrorKind(str, Enum):
    """Classified causes of a failed render."""

    LAUNCH_FAILURE = "launch_failure"
    CONTENT_LOAD_FAILURE = "content_load_failure"
    RENDER_TIMEOUT = "render_timeout"
    CAPTURE_FAILURE = "capture_failure"
    BACKEND_PROTOCOL_ERROR = "backend_protocol_error"
    TARGET_CLOSED = "target_closed"
    GENERATION_ERROR = "generation_error"


DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
MIN_DIMENSION = 100
MAX_DIMENSION = 4000
DEFAULT_BORDER_WIDTH = 2

CHART_CONTAINER_ID = "chart-container"
CHART_CANVAS_ID = "chart-canvas"
RENDERED_SELECTOR = f'#{CHART_CONTAINER_ID}[data-rendered="true"] canvas'

BROWSER_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-extensions",
    "--disable-plugins",
    "--disable-default-apps",
    "--disable-translate",
    "--disable-device-discovery-notifications",
    "--disable-software-rasterizer",
    "--disable-background-networking",
)
