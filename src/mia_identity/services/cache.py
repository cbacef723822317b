"""Simple cache abstractions."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for short-lived string values."""

    async def get(self, key: str) -> str | None:
        """Return a cached value if present and not expired."""

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a cached value with a TTL in seconds."""

    async def delete(self, key: str) -> None:
        """Drop a cached value."""


@dataclass
class _CacheEntry:
    value: str
    expires_at: datetime


@dataclass
class InMemoryCache(Cache):
    """In-process cache used when no Redis URL is configured."""

    _entries: dict[str, _CacheEntry]

    def __init__(self) -> None:
        self._entries = {}

    async def get(self, key: str) -> str | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if datetime.now(tz=UTC) >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a cached value with a TTL."""
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl_seconds)
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    async def delete(self, key: str) -> None:
        """Remove a cached value if present."""
        self._entries.pop(key, None)
