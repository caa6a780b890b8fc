"""Unit tests for the session result cache."""

import pytest

from recipe_engine.engine.cache import ResultCache
from recipe_engine.models.models import Recipe, RecipeSource


def make_recipe(recipe_id):
    return Recipe(id=recipe_id, title=f"Recipe {recipe_id}", ingredients=["egg"], source=RecipeSource.LOCAL)


class TestMakeKey:
    """Test cache key normalization."""

    def test_key_ignores_order_case_and_duplicates(self):
        """Test that equivalent ingredient lists share a key."""
        assert ResultCache.make_key(["Tomato", "beef", " egg "], None) == ResultCache.make_key(
            ["egg", "beef", "tomato", "BEEF"], "none"
        )

    def test_key_includes_dietary_filter(self):
        """Test that different diets produce different keys."""
        assert ResultCache.make_key(["egg"], "vegan") != ResultCache.make_key(["egg"], None)
        assert ResultCache.make_key(["egg"], "Vegan ") == ResultCache.make_key(["egg"], "vegan")

    def test_key_uses_none_without_filter(self):
        """Test that a missing filter is recorded as "none"."""
        assert ResultCache.make_key(["egg", "beef"], "") == (("beef", "egg"), "none")

    def test_format_key(self):
        """Test the log-friendly key rendering."""
        assert ResultCache.format_key((("beef", "egg"), "vegan")) == "beef,egg|vegan"


class TestResultCache:
    """Test storage, eviction and reset."""

    def test_get_miss_returns_none(self):
        """Test that an unknown key is a miss."""
        assert ResultCache.create().get(ResultCache.make_key(["egg"])) is None

    def test_set_and_get(self):
        """Test that stored candidates come back in order."""
        cache = ResultCache.create()
        key = ResultCache.make_key(["egg"])
        cache.set(key, [make_recipe("1"), make_recipe("2")])

        assert [recipe.id for recipe in cache.get(key)] == ["1", "2"]
        assert key in cache
        assert len(cache) == 1

    def test_empty_result_is_cacheable(self):
        """Test that an empty candidate list is a hit, not a miss."""
        cache = ResultCache.create()
        key = ResultCache.make_key(["egg"])
        cache.set(key, [])

        assert cache.get(key) == []

    def test_returned_list_is_a_copy(self):
        """Test that callers cannot mutate the cached list."""
        cache = ResultCache.create()
        key = ResultCache.make_key(["egg"])
        cache.set(key, [make_recipe("1")])

        cache.get(key).clear()

        assert len(cache.get(key)) == 1

    def test_lru_eviction(self):
        """Test that the least recently used entry is evicted past max_entries."""
        cache = ResultCache.create(max_entries=2)
        key_a, key_b, key_c = (ResultCache.make_key([name]) for name in ("a", "b", "c"))
        cache.set(key_a, [])
        cache.set(key_b, [])
        cache.get(key_a)
        cache.set(key_c, [])

        assert key_a in cache
        assert key_b not in cache
        assert key_c in cache

    def test_zero_means_unbounded(self):
        """Test that max_entries=0 keeps everything."""
        cache = ResultCache.create(max_entries=0)
        for index in range(300):
            cache.set(ResultCache.make_key([f"ingredient-{index}"]), [])

        assert len(cache) == 300

    def test_reset_clears_entries(self):
        """Test that reset() empties the cache."""
        cache = ResultCache.create()
        cache.set(ResultCache.make_key(["egg"]), [])
        cache.reset()

        assert len(cache) == 0

    def test_negative_bound_rejected(self):
        """Test that a negative bound is invalid."""
        with pytest.raises(ValueError):
            ResultCache(max_entries=-1)
