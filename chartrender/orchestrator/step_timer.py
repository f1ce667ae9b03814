"""Async context manager for timing and logging render stages."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from chartrender.config.constants import RenderStage, RenderStageDescription
from chartrender.infrastructure.logging.logger import StructuredLogger


class StageContext:
    """Mutable context for a timed render stage."""

    def __init__(self, stage: RenderStage) -> None:
        self.stage = stage
        self.details: dict[str, Any] = {}

    def note(self, **details: Any) -> None:
        self.details.update(details)


@asynccontextmanager
async def timed_stage(
    stage: RenderStage,
    logger: StructuredLogger,
    *,
    failed_stage: RenderStage | None = None,
    **context: Any,
) -> AsyncGenerator[StageContext, None]:
    """Time a render stage and log its outcome.

    On error the stage is logged as ``failed_stage`` (when given) and the
    exception propagates.
    """
    ctx = StageContext(stage)
    start = time.perf_counter()
    try:
        yield ctx
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.log_step(
            (failed_stage or stage).value,
            {**context, **ctx.details, "error": str(e).splitlines()[0] if str(e) else type(e).__name__},
            duration_ms=elapsed_ms,
        )
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    description = RenderStageDescription.__members__.get(stage.name)
    state = {**context, **ctx.details}
    if description is not None:
        state["description"] = description.value
    logger.log_step(stage.value, state, duration_ms=elapsed_ms)
