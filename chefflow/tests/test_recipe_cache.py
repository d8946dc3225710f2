"""
Unit tests for the per-restaurant recipes cache
"""
import json

from chefflow.services.recipe_cache import RecipeCache, cache_keys


class FakeClock:
    def __init__(self, now=1_000_000):
        self.now = now

    def __call__(self):
        return self.now


class BrokenStore(dict):
    def get(self, key, default=None):
        raise OSError("storage unavailable")

    def __setitem__(self, key, value):
        raise OSError("quota exceeded")


def test_cache_keys():
    assert cache_keys("bistro-1") == ("recipes_cache_bistro-1", "recipes_cache_expiry_bistro-1")


def test_set_then_get():
    clock = FakeClock()
    cache = RecipeCache(ttl_seconds=300, clock=clock)
    cache.set("bistro-1", [{"id": 1, "recipe_name": "Soup"}], ["Starters"])

    data = cache.get("bistro-1")
    assert data["recipes"] == [{"id": 1, "recipe_name": "Soup"}]
    assert data["categories"] == ["Starters"]
    assert data["restaurantId"] == "bistro-1"
    assert data["timestamp"] == clock.now
    assert cache.store["recipes_cache_expiry_bistro-1"] == str(clock.now + 300_000)


def test_entry_expires_and_is_removed():
    clock = FakeClock()
    cache = RecipeCache(ttl_seconds=300, clock=clock)
    cache.set("bistro-1", [], ["Mains"])

    clock.now += 300_000
    assert cache.get("bistro-1") is not None

    clock.now += 1
    assert cache.get("bistro-1") is None
    assert cache.store == {}


def test_entry_for_other_restaurant_is_a_miss():
    cache = RecipeCache(clock=FakeClock())
    data_key, expiry_key = cache_keys("bistro-1")
    cache.store[data_key] = json.dumps({"recipes": [], "categories": ["Mains"], "restaurantId": "cafe-2"})
    cache.store[expiry_key] = str(10 ** 15)

    assert cache.get("bistro-1") is None


def test_missing_expiry_is_a_miss():
    cache = RecipeCache(clock=FakeClock())
    data_key, _ = cache_keys("bistro-1")
    cache.store[data_key] = json.dumps({"restaurantId": "bistro-1"})

    assert cache.get("bistro-1") is None


def test_corrupt_entry_is_a_miss():
    cache = RecipeCache(clock=FakeClock())
    data_key, expiry_key = cache_keys("bistro-1")
    cache.store[data_key] = "{not json"
    cache.store[expiry_key] = str(10 ** 15)

    assert cache.get("bistro-1") is None


def test_storage_errors_are_swallowed_as_misses():
    cache = RecipeCache(store=BrokenStore(), clock=FakeClock())
    cache.set("bistro-1", [], ["Mains"])
    assert cache.get("bistro-1") is None


def test_clear_only_affects_one_restaurant():
    cache = RecipeCache(clock=FakeClock())
    cache.set("bistro-1", [], ["Mains"])
    cache.set("cafe-2", [], ["Mains"])

    cache.clear("bistro-1")
    assert cache.get("bistro-1") is None
    assert cache.get("cafe-2") is not None


def test_clear_all():
    store = {"unrelated": "keep"}
    cache = RecipeCache(store=store, clock=FakeClock())
    cache.set("bistro-1", [], ["Mains"])
    cache.set("cafe-2", [], ["Mains"])

    cache.clear_all()
    assert store == {"unrelated": "keep"}
