"""Generic bounded cache with per-entry TTL and glob-pattern eviction."""

import re
import threading
import time
from collections.abc import Callable
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a Redis-style glob (``*``, ``?``, ``[...]``, backslash escapes)."""
    out: list[str] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        elif ch == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(ch))
            else:
                body = pattern[i + 1:end]
                if body.startswith("^"):
                    body = "^" + re.escape(body[1:])
                else:
                    body = re.escape(body)
                out.append(f"[{body.replace(chr(92) + '-', '-')}]")
                i = end
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out) + r"\Z", re.DOTALL)


class BoundedCache(Generic[T]):
    """Thread-safe cache with max size and per-entry TTL."""

    def __init__(
        self,
        max_size: int = 200,
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        # key -> (value, inserted_at, expires_at)
        self._cache: dict[str, tuple[T, float, float]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> T | None:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None
            value, _, expires_at = entry
            if self._clock() >= expires_at:
                del self._cache[key]
                self._misses += 1
                return None
            self._hits += 1
            return value

    def set(self, key: str, value: T, ttl_seconds: int | None = None) -> None:
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        with self._lock:
            now = self._clock()
            if len(self._cache) >= self._max_size and key not in self._cache:
                self._purge_expired(now)
                if len(self._cache) >= self._max_size:
                    oldest_key = min(self._cache, key=lambda k: self._cache[k][1])
                    del self._cache[oldest_key]
            self._cache[key] = (value, now, now + ttl)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (_, _, expires_at) in self._cache.items() if now >= expires_at]
        for k in expired:
            del self._cache[k]

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def delete_matching(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the count deleted."""
        matcher = glob_to_regex(pattern)
        with self._lock:
            doomed = [key for key in self._cache if matcher.match(key)]
            for key in doomed:
                del self._cache[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._cache),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 2) if total > 0 else 0.0,
                "max_size": self._max_size,
                "ttl_seconds": self._ttl,
            }
