"""
CacheManager and backend tests: TTL expiry, remember/forget semantics,
stats, lifecycle selection and the Redis backend's client calls.
"""
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from catalog import cache as cache_module
from catalog.cache import CacheManager, InMemoryCacheBackend, RedisCacheBackend


# ---------------------------------------------------------------------------
# InMemoryCacheBackend
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_memory_backend_expires_after_ttl(clock):
    backend = InMemoryCacheBackend(clock=clock)
    await backend.set("products", "[]", ttl=300)

    clock.advance(299)
    assert await backend.get("products") == "[]"
    clock.advance(1)
    assert await backend.get("products") is None


@pytest.mark.asyncio
async def test_memory_backend_without_ttl_never_expires(clock):
    backend = InMemoryCacheBackend(clock=clock)
    await backend.set("k", "v")
    clock.advance(10 ** 9)
    assert await backend.get("k") == "v"


@pytest.mark.asyncio
async def test_memory_backend_delete_counts_existing_keys():
    backend = InMemoryCacheBackend()
    await backend.set("a", "1")
    assert await backend.delete("a", "b") == 1
    assert await backend.get("a") is None


# ---------------------------------------------------------------------------
# CacheManager
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remember_calls_loader_once():
    manager = CacheManager(InMemoryCacheBackend())
    loader = AsyncMock(return_value=[{"id": 1}])

    assert await manager.remember("products", 300, loader) == [{"id": 1}]
    assert await manager.remember("products", 300, loader) == [{"id": 1}]
    loader.assert_awaited_once()


@pytest.mark.asyncio
async def test_remember_caches_empty_collection():
    manager = CacheManager(InMemoryCacheBackend())
    loader = AsyncMock(return_value=[])
    await manager.remember("products", 300, loader)
    await manager.remember("products", 300, loader)
    loader.assert_awaited_once()


@pytest.mark.asyncio
async def test_remember_does_not_store_none():
    manager = CacheManager(InMemoryCacheBackend())
    loader = AsyncMock(return_value=None)
    assert await manager.remember("product_1", 600, loader) is None
    assert await manager.remember("product_1", 600, loader) is None
    assert loader.await_count == 2


@pytest.mark.asyncio
async def test_remember_reloads_after_ttl(clock):
    manager = CacheManager(InMemoryCacheBackend(clock=clock))
    loader = AsyncMock(side_effect=[{"v": 1}, {"v": 2}])

    assert await manager.remember("product_1", 600, loader) == {"v": 1}
    clock.advance(600)
    assert await manager.remember("product_1", 600, loader) == {"v": 2}


@pytest.mark.asyncio
async def test_forget_removes_every_key():
    manager = CacheManager(InMemoryCacheBackend())
    await manager.set("product_1", {"id": 1})
    await manager.set("products", [{"id": 1}])
    await manager.forget("product_1", "products")
    assert await manager.get("product_1") is None
    assert await manager.get("products") is None


@pytest.mark.asyncio
async def test_disabled_manager_always_loads():
    manager = CacheManager()
    loader = AsyncMock(return_value=[1])
    await manager.remember("products", 300, loader)
    await manager.remember("products", 300, loader)
    await manager.forget("products")
    assert loader.await_count == 2
    assert manager.enabled is False


@pytest.mark.asyncio
async def test_stats_hit_rate():
    manager = CacheManager(InMemoryCacheBackend())
    await manager.set("k", {"a": 1})
    await manager.get("k")
    await manager.get("missing")
    assert manager.stats == {
        "backend": "InMemoryCacheBackend",
        "hits": 1,
        "misses": 1,
        "hit_rate": 50.0,
    }


@pytest.mark.asyncio
async def test_backend_errors_propagate():
    backend = AsyncMock(spec=InMemoryCacheBackend)
    backend.get.side_effect = redis.ConnectionError("down")
    manager = CacheManager(backend)
    with pytest.raises(redis.ConnectionError):
        await manager.get("products")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_connect_memory_backend():
    manager = CacheManager()
    await manager.connect("memory")
    assert manager.enabled
    await manager.disconnect()
    assert not manager.enabled


@pytest.mark.asyncio
async def test_connect_none_leaves_cache_disabled():
    manager = CacheManager()
    await manager.connect("none")
    assert not manager.enabled


@pytest.mark.asyncio
async def test_connect_redis_unreachable_disables_cache(monkeypatch):
    client = AsyncMock()
    client.ping.side_effect = redis.ConnectionError("refused")
    monkeypatch.setattr(
        cache_module.RedisCacheBackend,
        "from_url",
        classmethod(lambda cls, url: cls(client)),
    )
    manager = CacheManager()
    await manager.connect("redis")
    assert not manager.enabled
    client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_connect_redis_reachable(monkeypatch):
    client = AsyncMock()
    client.ping.return_value = True
    monkeypatch.setattr(
        cache_module.RedisCacheBackend,
        "from_url",
        classmethod(lambda cls, url: cls(client)),
    )
    manager = CacheManager()
    await manager.connect("redis")
    assert manager.stats["backend"] == "RedisCacheBackend"


# ---------------------------------------------------------------------------
# RedisCacheBackend
# ---------------------------------------------------------------------------

class TestRedisCacheBackend:
    def setup_method(self):
        self.client = AsyncMock()
        self.backend = RedisCacheBackend(self.client)

    @pytest.mark.asyncio
    async def test_set_uses_expiry(self):
        await self.backend.set("product_1", '{"id": 1}', ttl=600)
        self.client.set.assert_awaited_once_with("product_1", '{"id": 1}', ex=600)

    @pytest.mark.asyncio
    async def test_get(self):
        self.client.get.return_value = "[]"
        assert await self.backend.get("products") == "[]"
        self.client.get.assert_awaited_once_with("products")

    @pytest.mark.asyncio
    async def test_delete(self):
        self.client.delete.return_value = 2
        assert await self.backend.delete("product_1", "products") == 2
        self.client.delete.assert_awaited_once_with("product_1", "products")

    @pytest.mark.asyncio
    async def test_delete_without_keys_skips_client(self):
        assert await self.backend.delete() == 0
        self.client.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_manager_round_trip_serialises_json(self):
        manager = CacheManager(self.backend)
        await manager.set("products", [{"id": 1, "price": 9.5}], ttl=300)
        stored = self.client.set.call_args.args[1]
        self.client.get.return_value = stored
        assert await manager.get("products") == [{"id": 1, "price": 9.5}]
