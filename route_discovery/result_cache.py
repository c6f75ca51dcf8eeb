"""Short-lived in-memory cache of discovery results."""
from __future__ import annotations

import hashlib
import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from . import config
from .preferences import CanonicalPreferences


def make_result_cache_key(
    coordinates: Sequence[Dict[str, float]],
    prefs: CanonicalPreferences,
    min_rating: float,
) -> str:
    """Key on the route endpoints, canonical preferences and effective rating."""
    if coordinates:
        first, last = coordinates[0], coordinates[-1]
        route = [first["latitude"], first["longitude"], last["latitude"], last["longitude"]]
    else:
        route = []
    payload = json.dumps(
        {"route": route, "prefs": prefs.to_dict(), "min_rating": min_rating},
        sort_keys=True,
        separators=(",", ":"),
    )
    return "sar-" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    key: str
    data: List[Dict[str, Any]]
    timestamp: float


class ResultCache:
    """TTL cache; expired entries are dropped when read, never swept."""

    def __init__(
        self,
        ttl_seconds: float = config.RESULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self.clock() - entry.timestamp >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.data

    def set(self, key: str, data: List[Dict[str, Any]]) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key=key, data=data, timestamp=self.clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
