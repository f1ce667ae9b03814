"""API sub-routers assembled into a single api_router."""

from fastapi import APIRouter

from chartrender.api.routers.cache import router as cache_router
from chartrender.api.routers.charts import router as charts_router
from chartrender.api.routers.health import router as health_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(charts_router, prefix="/charts", tags=["charts"])
api_router.include_router(cache_router, prefix="/cache", tags=["cache"])
