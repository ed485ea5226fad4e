"""
Material catalog loader: cache first, network refresh when stale
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from errors import LinguaKuError
from components.common.generation import Generation
from components.gateway.models import Level, PracticeMaterial
from .cache import CacheEntry, MaterialCache

logger = logging.getLogger(__name__)

SOURCE_CACHE = 'cache'
SOURCE_NETWORK = 'network'

GROUP_ORDER = (Level.BEGINNER, Level.INTERMEDIATE, Level.ADVANCED)


@dataclass(frozen=True)
class LevelStyle:
    category: str
    colors: tuple[str, str]
    icon: str


LEVEL_STYLES: Dict[Level, LevelStyle] = {
    Level.BEGINNER: LevelStyle('beginner', ('#10B981', '#059669'), '🌱'),
    Level.INTERMEDIATE: LevelStyle('intermediate', ('#3B82F6', '#2563EB'), '⚡'),
    Level.ADVANCED: LevelStyle('advanced', ('#EF4444', '#DC2626'), '🔥'),
    Level.OTHER: LevelStyle('other', ('#6366F1', '#8B5CF6'), '📚'),
}


def level_style(level) -> LevelStyle:
    """Color / icon bucket for a Level or a raw level string"""
    if not isinstance(level, Level):
        level = Level.parse(level)
    return LEVEL_STYLES[level]


def group_by_level(materials: List[PracticeMaterial]) -> Dict[str, List[PracticeMaterial]]:
    """
    Partition materials by level.

    Groups come out as Beginner, Intermediate, Advanced, then any other level
    names in first-seen order. Order within a group is the input order.
    """
    known: Dict[Level, List[PracticeMaterial]] = {level: [] for level in GROUP_ORDER}
    others: Dict[str, List[PracticeMaterial]] = {}

    for material in materials:
        if material.level in known:
            known[material.level].append(material)
        else:
            others.setdefault(material.level_name or Level.OTHER.value, []).append(material)

    grouped: Dict[str, List[PracticeMaterial]] = {}
    for level in GROUP_ORDER:
        if known[level]:
            grouped[level.value] = known[level]
    grouped.update(others)
    return grouped


@dataclass(frozen=True)
class CatalogSnapshot:
    """One reportable state of the catalog"""
    materials: List[PracticeMaterial]
    grouped: Dict[str, List[PracticeMaterial]]
    source: str
    stale: bool
    fetched_at_ms: int

    @classmethod
    def from_entry(cls, entry: CacheEntry, source: str, stale: bool) -> 'CatalogSnapshot':
        materials = list(entry.payload)
        return cls(materials, group_by_level(materials), source, stale, entry.fetched_at_ms)

    def filter_level(self, level: str) -> List[PracticeMaterial]:
        """Materials of one group, or everything for 'All'"""
        if level == 'All':
            return list(self.materials)
        return list(self.grouped.get(level, []))


class MaterialCatalogLoader:
    """Loads practice materials with stale-while-revalidate semantics.

    The cached list is reported first (even when stale), the network is only
    hit when the cache is missing or older than the TTL, and a network result
    arriving after close() is discarded.
    """

    def __init__(self, api, cache: MaterialCache):
        self.api = api
        self.cache = cache
        self._generation = Generation()
        self.current: Optional[CatalogSnapshot] = None

    def _report(self, token: int, snapshot: CatalogSnapshot,
                on_update: Callable[[CatalogSnapshot], None]) -> bool:
        if not self._generation.is_current(token):
            return False
        self.current = snapshot
        on_update(snapshot)
        return True

    async def load(self, on_update: Callable[[CatalogSnapshot], None]) -> Optional[CatalogSnapshot]:
        """
        Load the catalog, reporting every snapshot through on_update.

        Args:
            on_update: Called with the cached snapshot first, then at most
                once more with the refreshed one

        Returns:
            The last snapshot reported, or None if the load was superseded

        Raises:
            NetworkError / ServerError: the refresh failed and nothing was cached
        """
        token = self._generation.begin()
        entry = await self.cache.read()
        if not self._generation.is_current(token):
            return None

        if entry is not None:
            fresh = self.cache.is_fresh(entry)
            self._report(token, CatalogSnapshot.from_entry(entry, SOURCE_CACHE, stale=not fresh), on_update)
            if fresh:
                logger.info(f"Showing {len(entry.payload)} cached materials, cache is fresh")
                return self.current

        return await self._fetch(token, on_update, has_cached=entry is not None)

    async def refresh(self, on_update: Callable[[CatalogSnapshot], None]) -> Optional[CatalogSnapshot]:
        """Force a network fetch (pull to refresh)"""
        token = self._generation.begin()
        return await self._fetch(token, on_update, has_cached=self.current is not None)

    async def _fetch(self, token: int, on_update: Callable[[CatalogSnapshot], None],
                     has_cached: bool) -> Optional[CatalogSnapshot]:
        try:
            result = await self.api.get_materials()
            if not self._generation.is_current(token):
                logger.info("Discarding materials response for a closed or superseded load")
                return None
            materials = result.unwrap()
        except LinguaKuError as e:
            if not self._generation.is_current(token):
                return None
            if has_cached:
                logger.warning(f"Materials refresh failed, keeping cached data: {e!r}")
                return self.current
            logger.error(f"Failed to load materials: {e!r}")
            raise

        if not materials:
            logger.warning("No materials found")
            return self.current

        entry = await self.cache.write(materials)
        if not self._report(token, CatalogSnapshot.from_entry(entry, SOURCE_NETWORK, stale=False), on_update):
            return None
        logger.info(f"Loaded {len(materials)} materials from the server")
        return self.current

    def close(self) -> None:
        """Detach the loader, pending completions no longer have any effect"""
        self._generation.invalidate()
        logger.debug("Material catalog loader closed")
