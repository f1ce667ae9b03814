"""Chart record storage module."""

from pathlib import Path

from chartrender.config.settings import Settings
from chartrender.infrastructure.database.chart_store import (
    ChartStore,
    InMemoryChartStore,
    load_chart_records,
)

__all__ = [
    "ChartStore",
    "InMemoryChartStore",
    "create_chart_store",
    "load_chart_records",
]


def create_chart_store(settings: Settings) -> InMemoryChartStore:
    """Chart store seeded from ``chart_records_path`` when one is configured."""
    if settings.chart_records_path:
        return InMemoryChartStore(load_chart_records(Path(settings.chart_records_path)))
    return InMemoryChartStore()
