"""Deterministic cache keys for rendered charts."""

import hashlib
import json
from typing import Any

from chartrender.config.constants import ChartType
from chartrender.services.render.models import ChartData, RenderOptions

DEFAULT_PREFIX = "chart_cache"
DIGEST_LENGTH = 32  # hex chars, 128 bits

_GLOB_SPECIALS = str.maketrans({"*": r"\*", "?": r"\?", "[": r"\[", "]": r"\]", "\\": "\\\\"})


def canonical_json(payload: Any) -> str:
    """Serialize with stable key order and no insignificant whitespace."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def content_digest(chart_data: ChartData, options: RenderOptions) -> str:
    """Hash of the canonical (data, options) pair."""
    payload = {"data": chart_data.canonical(), "options": options.canonical()}
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def _checked_chart_id(chart_id: str) -> str:
    # the id is one key segment; a separator inside it would shift the layout
    if ":" in chart_id:
        raise ValueError(f"chart_id must not contain ':', got {chart_id!r}")
    return chart_id


def derive_key(
    chart_type: ChartType,
    chart_data: ChartData,
    options: RenderOptions,
    chart_id: str | None = None,
    prefix: str = DEFAULT_PREFIX,
) -> str:
    """Build the cache key for a render request.

    Layout: ``{prefix}:{type}:{width}:{height}:{theme}:[{chart_id}:]{digest}``.
    The readable segments let invalidation match by pattern without an index.
    """
    chart_type = ChartType(chart_type)
    parts = [
        prefix,
        chart_type.value,
        str(options.width),
        str(options.height),
        options.theme.value,
    ]
    if chart_id:
        parts.append(_checked_chart_id(chart_id))
    parts.append(content_digest(chart_data, options))
    return ":".join(parts)


def escape_glob(value: str) -> str:
    """Escape characters that Redis MATCH treats as wildcards."""
    return value.translate(_GLOB_SPECIALS)


def chart_pattern(chart_id: str, prefix: str = DEFAULT_PREFIX) -> str:
    """Pattern matching every cached variant of one stored chart.

    The id must fill its whole segment, so ``42`` never matches ``1427`` and
    never matches inside an ad hoc digest.
    """
    return f"{prefix}:*:*:*:*:{escape_glob(_checked_chart_id(chart_id))}:*"


def all_pattern(prefix: str = DEFAULT_PREFIX) -> str:
    """Pattern matching every cached render."""
    return f"{prefix}:*"
