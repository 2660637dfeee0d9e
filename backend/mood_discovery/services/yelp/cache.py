"""
Process-local response cache for the Yelp client.

Entries expire TTL seconds after they were stored and are dropped when read after that.
max_entries (optional) bounds the cache; the least recently used entry is evicted first.
"""
import json
import time
from collections import OrderedDict
from typing import Any, Callable

from mood_discovery.core.constants import YELP_CACHE_TTL_SECONDS


def make_cache_key(operation: str, params: dict[str, Any]) -> str:
    """Stable key: operation name + params as sorted JSON."""
    return f"{operation}:{json.dumps(params, sort_keys=True, default=str)}"


class ResponseCache:
    def __init__(
        self,
        ttl_seconds: float = YELP_CACHE_TTL_SECONDS,
        *,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()

    def get(self, key: str) -> Any | None:
        """Cached value, or None on miss. An expired entry is removed and counts as a miss."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self._clock())
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
