"""FastAPI dependencies."""

from fastapi import HTTPException, Request

from chartrender.orchestrator.pipeline import RenderPipeline


def get_pipeline(request: Request) -> RenderPipeline:
    """Return the pipeline created by the application lifespan."""
    pipeline: RenderPipeline | None = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=503, detail="Render pipeline is not initialised")
    return pipeline
