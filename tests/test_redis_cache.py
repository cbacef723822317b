"""Tests for the Redis cache adapter."""

import asyncio
from dataclasses import dataclass, field

from mia_identity.adapters.redis_cache import RedisCache


@dataclass
class FakeRedis:
    values: dict[str, str] = field(default_factory=dict)
    expiries: dict[str, int] = field(default_factory=dict)
    closed: bool = False

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.values[key] = value
        if ex is not None:
            self.expiries[key] = ex

    async def delete(self, key: str) -> None:
        self.values.pop(key, None)

    async def aclose(self) -> None:
        self.closed = True


def test_redis_cache_sets_with_expiry_and_deletes() -> None:
    client = FakeRedis()
    cache = RedisCache(client=client)  # type: ignore[arg-type]

    async def exercise() -> tuple[str | None, str | None]:
        await cache.set("session:abc", '{"state": "GREETING"}', 3600)
        before = await cache.get("session:abc")
        await cache.delete("session:abc")
        after = await cache.get("session:abc")
        await cache.close()
        return before, after

    before, after = asyncio.run(exercise())

    assert before == '{"state": "GREETING"}'
    assert after is None
    assert client.expiries["session:abc"] == 3600
    assert client.closed is True
