"""
UMC Media Hub - Hint Cache
===========================
Short-lived in-process hints for list rendering (e.g. "show the pay button").
A hint is never a system of record: every authoritative read or write of
the underlying rows overwrites it, and it expires after a TTL.
"""

import time
from typing import Any, Dict, Hashable, Optional, Tuple

_MISSING = object()


class HintCache:

    def __init__(self, ttl_seconds: float, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._last_sweep = clock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        entry = self._entries.get(key, _MISSING)
        if entry is _MISSING:
            return default
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return default
        return value

    def put(self, key: Hashable, value: Any) -> None:
        """Record the value just observed from an authoritative read/write."""
        now = self._clock()
        self._entries[key] = (now, value)
        # Expired entries are dropped at most once per TTL window
        if now - self._last_sweep > self.ttl_seconds:
            self._sweep(now)

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at > self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        return len(self._entries)
