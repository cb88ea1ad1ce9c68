"""Tests for the Redis lock helpers (in-memory client, no server)."""

import pytest

from livingword.stores import redis as redis_store


class _MemoryRedis:
    """Supports the SET NX and owner-checked delete the lock helpers issue."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    async def eval(self, script, numkeys, key, token):
        assert "redis.call" in script
        if self.values.get(key) == token:
            del self.values[key]
            return 1
        return 0


@pytest.fixture
def memory_redis(monkeypatch) -> _MemoryRedis:
    client = _MemoryRedis()
    monkeypatch.setattr(redis_store, "_redis", client)
    return client


@pytest.mark.asyncio
async def test_lock_is_exclusive_until_released(memory_redis):
    assert await redis_store.acquire_lock("verse:k", ttl=60, token="a") is True
    assert await redis_store.acquire_lock("verse:k", ttl=60, token="b") is False

    assert await redis_store.release_lock("verse:k", token="a") is True
    assert await redis_store.acquire_lock("verse:k", ttl=60, token="b") is True


@pytest.mark.asyncio
async def test_release_keeps_a_lock_owned_by_someone_else(memory_redis):
    # Our lock expired and another worker took the key.
    memory_redis.values["lock:verse:k"] = "other"

    assert await redis_store.release_lock("verse:k", token="mine") is False
    assert memory_redis.values["lock:verse:k"] == "other"


@pytest.mark.asyncio
async def test_helpers_raise_when_redis_is_not_initialized(monkeypatch):
    monkeypatch.setattr(redis_store, "_redis", None)

    with pytest.raises(RuntimeError):
        await redis_store.acquire_lock("verse:k", ttl=60)
