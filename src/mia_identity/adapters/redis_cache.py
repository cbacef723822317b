"""Redis-backed cache adapter."""

from dataclasses import dataclass

import redis.asyncio as redis

from mia_identity.services.cache import Cache


@dataclass
class RedisCache(Cache):
    """Cache implementation on top of an asyncio Redis client."""

    client: redis.Redis

    @classmethod
    def create(cls, redis_url: str) -> "RedisCache":
        """Create a cache with a managed Redis connection pool."""
        return cls(client=redis.from_url(redis_url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        """Return the cached value for a key, if present."""
        value = await self.client.get(key)
        return str(value) if value is not None else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value with an expiry in seconds."""
        await self.client.set(key, value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        """Delete a cached key."""
        await self.client.delete(key)

    async def close(self) -> None:
        """Close the underlying Redis connection pool."""
        await self.client.aclose()
