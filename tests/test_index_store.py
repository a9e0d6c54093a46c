"""Tests for the collection index store."""
from __future__ import annotations

import pytest

from personaut.domain.entities import IndexEntry
from personaut.domain.errors import FavoritesLimitError
from personaut.filestore.index import IndexStore


def make_entry(entity_id: str, updated_at: int, name: str = "") -> IndexEntry:
    return IndexEntry(
        id=entity_id,
        name=name or entity_id.title(),
        created_at=1000,
        updated_at=updated_at,
    )


@pytest.fixture
def index(blobs):
    return IndexStore(blobs, "personas", max_favorites=3)


class TestIndexLoading:
    """Test reading and normalizing the index document."""

    def test_missing_index_loads_empty(self, index):
        loaded = index.load()

        assert loaded.entries == []
        assert loaded.favorite_ids == []
        assert loaded.version == 1

    def test_corrupt_index_loads_empty(self, blobs, storage_root, index):
        (storage_root / "personas").mkdir(parents=True)
        (storage_root / "personas" / "index.json").write_text("[1, 2", encoding="utf-8")

        assert index.count() == 0

    def test_wrong_shape_loads_empty(self, blobs, index):
        blobs.write_json("personas/index.json", ["not", "an", "object"])

        assert index.count() == 0

    def test_normalizes_duplicates_and_flags(self, blobs, index):
        """Test duplicate favorites and entries are collapsed and flags derived."""
        blobs.write_json("personas/index.json", {
            "version": 1,
            "lastUpdated": 5,
            "entries": [
                {"id": "a", "name": "A", "createdAt": 1, "updatedAt": 2, "isFavorite": False},
                {"id": "a", "name": "A again", "createdAt": 1, "updatedAt": 3},
                {"id": "b", "name": "B", "createdAt": 1, "updatedAt": 1, "isFavorite": True},
            ],
            "favoriteIds": ["a", "a"],
        })

        assert index.favorite_ids == ["a"]
        entries = {entry.id: entry for entry in index.entries}
        assert len(index.entries) == 2
        assert entries["a"].is_favorite is True
        assert entries["a"].name == "A"
        assert entries["b"].is_favorite is False

    def test_reads_older_personas_key(self, blobs, index):
        """Test an index listing entries under "personas" is accepted."""
        blobs.write_json("personas/index.json", {
            "version": 1,
            "lastUpdated": 5,
            "personas": [{"id": "a", "name": "A", "createdAt": 1, "updatedAt": 2}],
            "favoriteIds": [],
        })

        assert [entry.id for entry in index.entries] == ["a"]

    def test_over_limit_favorites_are_kept_with_warning(self, blobs, index, caplog):
        blobs.write_json("personas/index.json", {"entries": [], "favoriteIds": ["a", "b", "c", "d"]})

        assert index.favorite_ids == ["a", "b", "c", "d"]
        assert "above the limit" in caplog.text


class TestIndexEntries:
    """Test entry upsert and removal."""

    def test_upsert_persists_with_camel_case_keys(self, blobs, index):
        index.upsert_entry(make_entry("a", 10))

        document = blobs.read_json("personas/index.json")
        assert document["entries"][0]["id"] == "a"
        assert document["entries"][0]["updatedAt"] == 10
        assert "favoriteIds" in document
        assert "lastUpdated" in document

    def test_entries_sorted_newest_first(self, index):
        index.upsert_entry(make_entry("old", 10))
        index.upsert_entry(make_entry("new", 30))
        index.upsert_entry(make_entry("mid", 20))

        assert [entry.id for entry in index.entries] == ["new", "mid", "old"]

    def test_upsert_replaces_existing(self, index):
        index.upsert_entry(make_entry("a", 10, name="First"))
        index.upsert_entry(make_entry("a", 20, name="Second"))

        assert index.count() == 1
        assert index.get_entry("a").name == "Second"

    def test_remove_entry(self, index):
        index.upsert_entry(make_entry("a", 10))

        assert index.remove_entry("a") is True
        assert index.remove_entry("a") is False
        assert index.count() == 0

    def test_entries_are_copies(self, index):
        index.upsert_entry(make_entry("a", 10))
        index.entries[0].name = "changed"

        assert index.get_entry("a").name == "A"

    def test_state_survives_reload(self, blobs, index):
        index.upsert_entry(make_entry("a", 10))
        index.add_favorite_id("a")

        reloaded = IndexStore(blobs, "personas")
        assert reloaded.count() == 1
        assert reloaded.is_favorite("a")

    def test_reset(self, index):
        index.upsert_entry(make_entry("a", 10))
        index.add_favorite_id("a")
        index.reset()

        assert index.count() == 0
        assert index.favorite_ids == []


class TestIndexFavorites:
    """Test favorite-id membership."""

    def test_add_sets_entry_flag(self, index):
        index.upsert_entry(make_entry("a", 10))

        assert index.add_favorite_id("a") is True
        assert index.add_favorite_id("a") is False
        assert index.get_entry("a").is_favorite is True

    def test_upsert_keeps_flag_for_favorites(self, index):
        index.upsert_entry(make_entry("a", 10))
        index.add_favorite_id("a")
        index.upsert_entry(make_entry("a", 20))

        assert index.get_entry("a").is_favorite is True

    def test_remove_clears_flag(self, index):
        index.upsert_entry(make_entry("a", 10))
        index.add_favorite_id("a")

        assert index.remove_favorite_id("a") is True
        assert index.remove_favorite_id("a") is False
        assert index.get_entry("a").is_favorite is False

    def test_capacity_is_enforced(self, index):
        """Test the favorites list never grows beyond max_favorites."""
        for entity_id in ("a", "b", "c"):
            index.add_favorite_id(entity_id)

        with pytest.raises(FavoritesLimitError) as exc_info:
            index.add_favorite_id("d")

        assert exc_info.value.limit == 3
        assert index.favorite_ids == ["a", "b", "c"]

    def test_size_bytes(self, index):
        assert index.size_bytes() == 0
        index.upsert_entry(make_entry("a", 10))

        assert index.size_bytes() > 0
