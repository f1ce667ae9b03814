"""Render and cache error types."""

from chartrender.config.constants import RenderErrorKind


class RenderError(Exception):
    """A render request that produced no image.

    ``reason`` is safe to show to callers; ``detail`` keeps the backend message
    for logs.
    """

    kind: RenderErrorKind = RenderErrorKind.GENERATION_ERROR
    default_reason: str = "Chart generation failed"

    def __init__(self, reason: str | None = None, detail: str | None = None):
        self.reason = reason or self.default_reason
        self.detail = detail
        super().__init__(self.reason)

    @property
    def is_infrastructure(self) -> bool:
        """True when the browser itself failed rather than the chart."""
        return self.kind in _INFRASTRUCTURE_KINDS


class LaunchFailure(RenderError):
    kind = RenderErrorKind.LAUNCH_FAILURE
    default_reason = "Rendering browser failed to start"


class ContentLoadFailure(RenderError):
    kind = RenderErrorKind.CONTENT_LOAD_FAILURE
    default_reason = "Chart document failed to load"


class RenderTimeout(RenderError):
    kind = RenderErrorKind.RENDER_TIMEOUT
    default_reason = "Chart did not finish rendering in time"


class CaptureFailure(RenderError):
    kind = RenderErrorKind.CAPTURE_FAILURE
    default_reason = "Screenshot failed"


class BackendProtocolError(RenderError):
    kind = RenderErrorKind.BACKEND_PROTOCOL_ERROR
    default_reason = "Browser protocol error. The browser instance may have crashed."


class TargetClosed(RenderError):
    kind = RenderErrorKind.TARGET_CLOSED
    default_reason = (
        "Browser target closed unexpectedly. This may be due to resource constraints or timeout."
    )


class GenerationError(RenderError):
    kind = RenderErrorKind.GENERATION_ERROR


_INFRASTRUCTURE_KINDS = frozenset({
    RenderErrorKind.LAUNCH_FAILURE,
    RenderErrorKind.BACKEND_PROTOCOL_ERROR,
    RenderErrorKind.TARGET_CLOSED,
})

_TARGET_CLOSED_MARKERS = (
    "target closed",
    "has been closed",
    "browser has disconnected",
    "out of memory",
    "resource exhausted",
)
_PROTOCOL_MARKERS = ("protocol error",)


def classify_failure(error: BaseException) -> RenderError:
    """Map an unexpected backend exception to a classified render error."""
    if isinstance(error, RenderError):
        return error
    message = str(error)
    lowered = message.lower()
    if any(marker in lowered for marker in _TARGET_CLOSED_MARKERS):
        return TargetClosed(detail=message)
    if any(marker in lowered for marker in _PROTOCOL_MARKERS):
        return BackendProtocolError(detail=message)
    first_line = message.splitlines()[0] if message else type(error).__name__
    return GenerationError(reason=f"Chart generation failed: {first_line}", detail=message)


class CacheUnavailable(Exception):
    """The render cache could not serve an operation."""


class ChartNotFound(LookupError):
    """No stored chart for the requested hash."""

    def __init__(self, chart_hash: str):
        self.chart_hash = chart_hash
        super().__init__(f"Chart not found: {chart_hash}")
