"""
Per-restaurant recipes cache.

Entries live in a plain key/value store under two keys per restaurant:
``recipes_cache_<id>`` holds a JSON blob with the recipes, the category
list, the write timestamp and the owning restaurant id, and
``recipes_cache_expiry_<id>`` holds the expiry time in epoch milliseconds.
"""
import json
import logging
import time
from typing import Callable, MutableMapping, Optional

from chefflow.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "recipes_cache_"
CACHE_EXPIRY_KEY_PREFIX = "recipes_cache_expiry_"


def _now_ms() -> int:
    return int(time.time() * 1000)


def cache_keys(restaurant_id: str) -> tuple[str, str]:
    return f"{CACHE_KEY_PREFIX}{restaurant_id}", f"{CACHE_EXPIRY_KEY_PREFIX}{restaurant_id}"


class RecipeCache:
    """TTL cache of the recipe book, keyed by restaurant"""

    def __init__(
        self,
        store: Optional[MutableMapping[str, str]] = None,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store if store is not None else {}
        self.ttl_ms = (ttl_seconds if ttl_seconds is not None else settings.RECIPE_CACHE_TTL_SECONDS) * 1000
        self.clock = clock

    def get(self, restaurant_id: str) -> Optional[dict]:
        """Cached {recipes, categories, timestamp, restaurantId} or None on a miss"""
        data_key, expiry_key = cache_keys(restaurant_id)
        try:
            raw = self.store.get(data_key)
            expiry = self.store.get(expiry_key)
            if not raw or not expiry:
                return None

            if self.clock() > int(expiry):
                # Expired, clean it up
                self.store.pop(data_key, None)
                self.store.pop(expiry_key, None)
                return None

            data = json.loads(raw)
            if data.get("restaurantId") != restaurant_id:
                return None
            return data
        except Exception as e:
            logger.warning(f"Error reading recipes cache for {restaurant_id}: {e}")
            return None

    def set(self, restaurant_id: str, recipes: list, categories: list) -> None:
        data_key, expiry_key = cache_keys(restaurant_id)
        now = self.clock()
        payload = {
            "recipes": recipes,
            "categories": categories,
            "timestamp": now,
            "restaurantId": restaurant_id,
        }
        try:
            self.store[data_key] = json.dumps(payload)
            self.store[expiry_key] = str(now + self.ttl_ms)
            logger.debug(f"Recipes cached for restaurant {restaurant_id}")
        except Exception as e:
            logger.warning(f"Error writing recipes cache for {restaurant_id}: {e}")

    def clear(self, restaurant_id: str) -> None:
        data_key, expiry_key = cache_keys(restaurant_id)
        self.store.pop(data_key, None)
        self.store.pop(expiry_key, None)
        logger.debug(f"Recipes cache cleared for restaurant {restaurant_id}")

    def clear_all(self) -> None:
        for key in [k for k in self.store if k.startswith(CACHE_KEY_PREFIX)]:
            self.store.pop(key, None)


# Process-wide cache used by the recipes API
recipe_cache = RecipeCache()
