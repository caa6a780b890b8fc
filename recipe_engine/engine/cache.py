"""Session-scoped cache of resolved candidate lists.

Keyed by the normalized, deduplicated, sorted ingredient set plus the dietary
filter (or "none"), so ingredient order and case do not matter. The cached
value is the pre-partition candidate list; calorie limits are applied after a
cache hit. Least recently used entries are evicted past ``max_entries``.
"""

from collections import OrderedDict
from typing import Iterable, Optional

from recipe_engine.engine.scoring import NO_DIETARY_FILTER, has_dietary_filter, normalize_ingredients
from recipe_engine.models.models import Recipe

CacheKey = tuple[tuple[str, ...], str]


class ResultCache:
    """In-memory LRU map from request key to candidate list."""

    def __init__(self, max_entries: int = 0) -> None:
        """Initialize the cache.

        Args:
            max_entries: Maximum entries kept; 0 keeps everything.
        """
        if max_entries < 0:
            raise ValueError(f"max_entries must be at least 0, got: {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, list[Recipe]] = OrderedDict()

    @classmethod
    def create(cls, max_entries: int = 0) -> "ResultCache":
        return cls(max_entries)

    @staticmethod
    def make_key(ingredients: Iterable[str], dietary_filter: Optional[str] = None) -> CacheKey:
        normalized = tuple(sorted(set(normalize_ingredients(ingredients))))
        diet = dietary_filter.strip().lower() if has_dietary_filter(dietary_filter) else NO_DIETARY_FILTER
        return normalized, diet

    @staticmethod
    def format_key(key: CacheKey) -> str:
        """Readable form of a key for log records."""
        ingredients, diet = key
        return f"{','.join(ingredients)}|{diet}"

    def get(self, key: CacheKey) -> Optional[list[Recipe]]:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return list(self._entries[key])

    def set(self, key: CacheKey, candidates: Iterable[Recipe]) -> None:
        self._entries[key] = list(candidates)
        self._entries.move_to_end(key)
        if self.max_entries and len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def reset(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
