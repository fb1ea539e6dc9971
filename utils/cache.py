"""
Small in-memory TTL cache handed to the suggestion and weather providers.

The clock is injectable so expiry can be driven deterministically.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TTLCache:
    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._entries: Dict[str, tuple[Any, datetime]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Get cached value if not expired."""
        if key in self._entries:
            value, expiry = self._entries[key]
            if self._clock() < expiry:
                return value
            del self._entries[key]
        return None

    def set(self, key: str, value: Any, ttl: timedelta):
        """Cache value with TTL."""
        self._entries[key] = (value, self._clock() + ttl)

    def expire(self, key: str):
        self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
