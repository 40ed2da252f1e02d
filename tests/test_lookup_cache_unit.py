from datetime import timedelta

import pytest

from marketplace.core.cache import CachePolicy, LookupCache

pytestmark = pytest.mark.unit


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingLoader:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return [f"load-{self.calls}"]


POLICY = CachePolicy(sliding=timedelta(seconds=60), absolute=timedelta(seconds=300))


@pytest.mark.asyncio
async def test_hit_does_not_reload():
    cache = LookupCache(timer=FakeClock())
    loader = CountingLoader()

    first = await cache.get_or_load("types", loader, POLICY)
    second = await cache.get_or_load("types", loader, POLICY)

    assert first == second == ["load-1"]
    assert loader.calls == 1


@pytest.mark.asyncio
async def test_entry_expires_after_sliding_window_without_hits():
    clock = FakeClock()
    cache = LookupCache(timer=clock)
    loader = CountingLoader()

    await cache.get_or_load("types", loader, POLICY)
    clock.advance(61)

    assert "types" not in cache
    assert await cache.get_or_load("types", loader, POLICY) == ["load-2"]


@pytest.mark.asyncio
async def test_hits_slide_the_window_until_the_absolute_deadline():
    clock = FakeClock()
    cache = LookupCache(timer=clock)
    loader = CountingLoader()

    await cache.get_or_load("types", loader, POLICY)
    # Hit every 50s: each hit keeps the entry alive for another 60s
    for _ in range(5):
        clock.advance(50)
        await cache.get_or_load("types", loader, POLICY)
    assert loader.calls == 1

    # 250s elapsed; the next hit lands past the 300s absolute deadline
    clock.advance(55)
    await cache.get_or_load("types", loader, POLICY)
    assert loader.calls == 2


@pytest.mark.asyncio
async def test_keys_are_independent_and_clear_drops_everything():
    cache = LookupCache(timer=FakeClock())
    types = CountingLoader()
    categories = CountingLoader()

    await cache.get_or_load("types", types, POLICY)
    await cache.get_or_load("categories", categories, POLICY)
    cache.invalidate("types")

    assert "types" not in cache
    assert "categories" in cache

    cache.clear()
    assert "categories" not in cache
