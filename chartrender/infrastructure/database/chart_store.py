"""Chart record lookup used by stored-chart renders."""

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter

from chartrender.services.render.models import ChartRecord

logger = logging.getLogger(__name__)

_RECORDS = TypeAdapter(list[ChartRecord])


class ChartStore(Protocol):
    """Read access to stored chart records."""

    async def get_chart_by_hash(self, chart_hash: str) -> ChartRecord | None:
        ...


class InMemoryChartStore:
    """Process-local chart store."""

    def __init__(self, records: list[ChartRecord] | None = None) -> None:
        self._records: dict[str, ChartRecord] = {r.chart_hash: r for r in records or []}

    def __len__(self) -> int:
        return len(self._records)

    async def get_chart_by_hash(self, chart_hash: str) -> ChartRecord | None:
        return self._records.get(chart_hash)

    async def save(self, record: ChartRecord) -> None:
        self._records[record.chart_hash] = record
        logger.debug("Chart record saved: %s", record.chart_hash)

    async def delete(self, chart_hash: str) -> bool:
        return self._records.pop(chart_hash, None) is not None


def load_chart_records(path: Path) -> list[ChartRecord]:
    """Load chart records from a JSON array file."""
    if not path.exists():
        raise FileNotFoundError(f"Chart records not found: {path}")

    with open(path, encoding="utf-8") as f:
        records = _RECORDS.validate_python(json.load(f))

    logger.info("Loaded %s chart records from %s", len(records), path)
    return records
