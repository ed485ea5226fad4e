"""
Durable materials cache with a 24 hour TTL
"""
import time
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from database import StorageKeys
from errors import CacheCorrupt
from components.gateway.models import PracticeMaterial

logger = logging.getLogger(__name__)

MATERIALS_TTL_MS = 24 * 60 * 60 * 1000  # 24 hours


def now_ms() -> int:
    return int(time.time() * 1000)


def is_fresh(fetched_at_ms: int, now: int, ttl_ms: int = MATERIALS_TTL_MS) -> bool:
    """An entry is fresh iff it is younger than the TTL"""
    return now - fetched_at_ms < ttl_ms


@dataclass(frozen=True)
class CacheEntry:
    """Cached payload plus the epoch millis it was fetched at"""
    payload: Any
    fetched_at_ms: int

    def age_ms(self, now: int) -> int:
        return now - self.fetched_at_ms

    def is_fresh(self, now: int, ttl_ms: int = MATERIALS_TTL_MS) -> bool:
        return is_fresh(self.fetched_at_ms, now, ttl_ms)


class MaterialCache:
    """Stores the materials list in the key/value store together with its fetch time"""

    def __init__(self, store, ttl_ms: int = MATERIALS_TTL_MS,
                 clock: Callable[[], int] = now_ms, key: str = StorageKeys.MATERIALS_CACHE):
        """
        Initialize the cache

        Args:
            store: Key/value store with get_data / save_data
            ttl_ms: Time to live in milliseconds (default: 24 hours)
            clock: Returns the current epoch millis
            key: Storage key for the cache entry
        """
        self.store = store
        self.ttl_ms = ttl_ms
        self.clock = clock
        self.key = key
        self._stats = {
            'hits': 0,
            'stale_hits': 0,
            'misses': 0,
            'stores': 0,
            'corrupt': 0
        }

    async def read(self) -> Optional[CacheEntry]:
        """
        Read the cached entry regardless of freshness

        Returns:
            CacheEntry with a list of PracticeMaterial, or None on a miss.
            Corrupt entries count as a miss.
        """
        try:
            raw = await self.store.get_data(self.key)
            entry = self._decode(raw) if raw is not None else None
        except CacheCorrupt as e:
            self._stats['corrupt'] += 1
            self._stats['misses'] += 1
            logger.warning(f"Materials cache is corrupt, ignoring it: {e}")
            return None

        if entry is None:
            self._stats['misses'] += 1
            return None

        age = entry.age_ms(self.clock())
        if entry.is_fresh(self.clock(), self.ttl_ms):
            self._stats['hits'] += 1
            logger.debug(f"Materials cache hit (age: {age / 1000:.0f}s)")
        else:
            self._stats['stale_hits'] += 1
            logger.debug(f"Materials cache stale (age: {age / 1000:.0f}s)")
        return entry

    async def write(self, materials: List[PracticeMaterial]) -> CacheEntry:
        """
        Overwrite the cache with a new entry stamped with the current time

        Args:
            materials: Materials fetched from the server

        Returns:
            The stored entry
        """
        entry = CacheEntry(payload=list(materials), fetched_at_ms=self.clock())
        await self.store.save_data(self.key, {
            'materials': [m.to_dict() for m in materials],
            'timestamp': entry.fetched_at_ms
        })
        self._stats['stores'] += 1
        logger.debug(f"Cached {len(materials)} materials")
        return entry

    async def clear(self) -> None:
        await self.store.remove_data(self.key)
        logger.info("Materials cache cleared")

    def is_fresh(self, entry: CacheEntry) -> bool:
        return entry.is_fresh(self.clock(), self.ttl_ms)

    @staticmethod
    def _decode(raw: Any) -> CacheEntry:
        """Validate the stored shape {materials: [...], timestamp: int}"""
        if not isinstance(raw, dict):
            raise CacheCorrupt("materials cache is not an object")
        materials = raw.get('materials')
        timestamp = raw.get('timestamp')
        if not isinstance(materials, list) or not isinstance(timestamp, (int, float)):
            raise CacheCorrupt("materials cache is missing materials or timestamp")
        try:
            payload = [PracticeMaterial.from_dict(m) for m in materials]
        except (AttributeError, TypeError) as e:
            raise CacheCorrupt(f"materials cache has a malformed material: {e}") from e
        return CacheEntry(payload=payload, fetched_at_ms=int(timestamp))

    def get_stats(self) -> Dict:
        """Get cache statistics"""
        total_requests = self._stats['hits'] + self._stats['stale_hits'] + self._stats['misses']
        hit_rate = (self._stats['hits'] / total_requests * 100) if total_requests > 0 else 0

        return {
            **self._stats,
            'total_requests': total_requests,
            'hit_rate': hit_rate
        }
