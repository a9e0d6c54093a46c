"""Tests for the per-store memory cache."""
from __future__ import annotations

from personaut.filestore.cache import MemoryCache


class TestMemoryCache:
    """Test memory cache operations."""

    def test_set_get_delete(self):
        cache = MemoryCache()
        cache.set("a", 1)

        assert cache.get("a") == 1
        assert "a" in cache
        assert len(cache) == 1

        cache.delete("a")
        cache.delete("a")
        assert cache.get("a") is None
        assert "a" not in cache

    def test_clear_and_iterate(self):
        cache = MemoryCache()
        cache.set("a", 1)
        cache.set("b", 2)

        assert sorted(cache) == ["a", "b"]
        cache.clear()
        assert len(cache) == 0

    def test_store_clear_cache_rereads_disk(self, persona_store, sample_persona, storage_root):
        """Test clear_cache forces the next read to go back to disk."""
        assert sample_persona.id in persona_store.cache

        persona_store.clear_cache()
        assert len(persona_store.cache) == 0

        assert persona_store.get_by_id(sample_persona.id) == sample_persona
        assert sample_persona.id in persona_store.cache
