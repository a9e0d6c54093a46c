"""Tests for the persona file store: CRUD, regenerate and favorites."""
from __future__ import annotations

import shutil

import pytest

from personaut.domain.entities import Persona
from personaut.domain.errors import FavoritesLimitError, NotFoundError, ValidationError
from personaut.filestore import FeedbackFileStorage, PersonaFileStorage


class TestPersonaCreate:
    """Test persona creation and the on-disk layout."""

    def test_create_assigns_identity(self, persona_store):
        persona = persona_store.create("Alice", {"age": 34})

        assert persona.id
        assert persona.name == "Alice"
        assert persona.attributes == {"age": 34}
        assert persona.version_number == 1
        assert persona.created_at == persona.updated_at

    def test_display_name_is_not_persisted(self, persona_store, blobs):
        persona = persona_store.create("Alice")

        assert persona.display_name == "Alice"
        assert "display_field" not in Persona.model_fields
        assert "displayField" not in blobs.read_json(f"personas/{persona.id}/entity.json")["entity"]

    def test_entity_document_layout(self, persona_store, blobs):
        """Test entity.json wraps a camelCase entity with a format version."""
        persona = persona_store.create("Alice", {"age": 34}, backstory="Born in Lisbon.")

        document = blobs.read_json(f"personas/{persona.id}/entity.json")
        assert document["version"] == 1
        entity = document["entity"]
        assert entity["id"] == persona.id
        assert entity["versionNumber"] == 1
        assert entity["createdAt"] == persona.created_at
        assert entity["backstory"] == "Born in Lisbon."
        assert "isFavorite" not in entity

    def test_create_updates_index(self, persona_store):
        persona = persona_store.create("Alice")

        entries = persona_store.list_entries()
        assert [entry.id for entry in entries] == [persona.id]
        assert entries[0].name == "Alice"
        assert entries[0].is_favorite is False

    def test_round_trip_through_disk(self, persona_store, blobs):
        """Test a fresh store decodes exactly what was written."""
        persona = persona_store.create(
            "Bob",
            {"hobbies": ["chess", "running"], "age": 51},
            additional_context="Prefers email.",
            input_tokens=12,
        )

        fresh = PersonaFileStorage(blobs)
        assert fresh.get_by_id(persona.id) == persona

    @pytest.mark.parametrize("field", ["id", "created_at", "updated_at", "version_number"])
    def test_protected_fields_rejected(self, persona_store, field):
        with pytest.raises(ValidationError):
            persona_store.create("Alice", **{field: 1})

    def test_unknown_fields_rejected(self, persona_store):
        with pytest.raises(ValidationError):
            persona_store.create("Alice", favourite_colour="blue")


class TestPersonaRead:
    """Test lookup, listing and search."""

    def test_missing_id_returns_none(self, persona_store):
        assert persona_store.get_by_id("does-not-exist") is None

    @pytest.mark.parametrize("bad_id", ["", "../index", "a/b", ".hidden"])
    def test_unsafe_ids_are_not_found(self, persona_store, bad_id):
        assert persona_store.get_by_id(bad_id) is None

    def test_get_all_newest_first(self, persona_store, clock):
        first = persona_store.create("First")
        second = persona_store.create("Second")
        persona_store.update(first.id, {"backstory": "edited"})

        assert [p.name for p in persona_store.get_all()] == ["First", "Second"]
        assert second.id in {p.id for p in persona_store.get_all()}

    def test_search_is_case_insensitive_substring(self, persona_store):
        persona_store.create("Alice Walker")
        persona_store.create("Bob")

        assert [p.name for p in persona_store.search("walk")] == ["Alice Walker"]
        assert persona_store.search("ALICE")[0].name == "Alice Walker"
        assert persona_store.search("zed") == []

    def test_corrupt_entity_is_skipped(self, persona_store, storage_root):
        persona = persona_store.create("Alice")
        persona_store.clear_cache()
        (storage_root / "personas" / persona.id / "entity.json").write_text("{oops", encoding="utf-8")

        assert persona_store.get_by_id(persona.id) is None
        assert persona_store.get_all() == []

    def test_deleted_directory_is_skipped(self, persona_store, storage_root):
        """Test an index entry whose directory vanished is skipped in listings."""
        kept = persona_store.create("Alice")
        lost = persona_store.create("Bob")
        persona_store.add_favorite(kept.id)
        persona_store.add_favorite(lost.id)
        persona_store.clear_cache()

        shutil.rmtree(storage_root / "personas" / lost.id)

        assert persona_store.get_by_id(lost.id) is None
        assert [p.id for p in persona_store.get_all()] == [kept.id]
        assert [p.id for p in persona_store.get_favorites()] == [kept.id]

    def test_preload_fills_cache(self, persona_store, blobs):
        persona_store.create("Alice")
        persona_store.create("Bob")

        fresh = PersonaFileStorage(blobs)
        fresh.initialize()
        assert len(fresh.cache) == 0
        assert fresh.preload_cache() == 2
        assert len(fresh.cache) == 2


class TestPersonaUpdate:
    """Test update and regenerate semantics."""

    def test_update_preserves_identity(self, persona_store, sample_persona):
        updated = persona_store.update(sample_persona.id, {"name": "Alicia"})

        assert updated.id == sample_persona.id
        assert updated.created_at == sample_persona.created_at
        assert updated.version_number == sample_persona.version_number
        assert updated.updated_at > sample_persona.updated_at
        assert persona_store.get_by_id(sample_persona.id).name == "Alicia"
        assert persona_store.index.get_entry(sample_persona.id).name == "Alicia"

    def test_updated_at_strictly_increases_within_a_millisecond(self, persona_store, monkeypatch):
        """Test back-to-back updates never reuse an updatedAt value."""
        monkeypatch.setattr("personaut.filestore.base.now_ms", lambda: 5_000)
        persona = persona_store.create("Alice")

        first = persona_store.update(persona.id, {"backstory": "one"})
        second = persona_store.update(persona.id, {"backstory": "two"})

        assert persona.updated_at < first.updated_at < second.updated_at

    def test_update_missing_returns_none(self, persona_store):
        assert persona_store.update("missing", {"name": "x"}) is None

    def test_update_rejects_protected_fields(self, persona_store, sample_persona):
        with pytest.raises(ValidationError):
            persona_store.update(sample_persona.id, {"version_number": 7})

    def test_update_rejects_invalid_values(self, persona_store, sample_persona):
        with pytest.raises(ValidationError):
            persona_store.update(sample_persona.id, {"attributes": "not a mapping"})

    def test_regenerate_bumps_version(self, persona_store, sample_persona):
        regenerated = persona_store.regenerate(sample_persona.id, {"backstory": "New story"})

        assert regenerated.version_number == sample_persona.version_number + 1
        assert regenerated.id == sample_persona.id
        assert regenerated.created_at == sample_persona.created_at
        assert regenerated.backstory == "New story"
        assert persona_store.index.get_entry(sample_persona.id).version_number == 2

    def test_regenerate_missing_returns_none(self, persona_store):
        assert persona_store.regenerate("missing", {}) is None


class TestPersonaDelete:
    """Test deletion cascade and clearing."""

    def test_delete_cascades(self, persona_store, sample_persona, storage_root):
        persona_store.add_favorite(sample_persona.id)

        assert persona_store.delete(sample_persona.id) is True
        assert not (storage_root / "personas" / sample_persona.id).exists()
        assert persona_store.get_by_id(sample_persona.id) is None
        assert persona_store.index.get_entry(sample_persona.id) is None
        assert persona_store.get_favorite_ids() == []
        assert persona_store.count() == 0

    def test_delete_missing_returns_false(self, persona_store):
        assert persona_store.delete("missing") is False
        assert persona_store.delete("../escape") is False

    def test_clear_all(self, persona_store, storage_root):
        alice = persona_store.create("Alice")
        persona_store.create("Bob")
        persona_store.add_favorite(alice.id)

        persona_store.clear_all()

        assert persona_store.count() == 0
        assert persona_store.get_favorite_ids() == []
        assert len(persona_store.cache) == 0
        assert [p.name for p in (storage_root / "personas").iterdir()] == ["index.json"]

    def test_get_stats(self, persona_store):
        alice = persona_store.create("Alice")
        persona_store.create("Bob")
        persona_store.add_favorite(alice.id)

        stats = persona_store.get_stats()
        assert stats["count"] == 2
        assert stats["favorites_count"] == 1
        assert stats["index_size_bytes"] > 0


class TestPersonaFavorites:
    """Test the favorites manager over the persona store."""

    def test_add_and_remove(self, persona_store, sample_persona):
        persona_store.add_favorite(sample_persona.id)

        assert persona_store.is_favorite(sample_persona.id)
        assert persona_store.get_favorites_count() == 1
        assert persona_store.index.get_entry(sample_persona.id).is_favorite is True

        persona_store.remove_favorite(sample_persona.id)
        assert not persona_store.is_favorite(sample_persona.id)
        assert persona_store.get_favorites() == []

    def test_add_is_idempotent(self, persona_store, sample_persona):
        persona_store.add_favorite(sample_persona.id)
        persona_store.add_favorite(sample_persona.id)

        assert persona_store.get_favorite_ids() == [sample_persona.id]

    def test_favorite_does_not_rewrite_entity(self, persona_store, sample_persona, blobs):
        """Test favoriting touches only the index."""
        before = blobs.read_json(f"personas/{sample_persona.id}/entity.json")
        persona_store.add_favorite(sample_persona.id)

        assert blobs.read_json(f"personas/{sample_persona.id}/entity.json") == before

    def test_sixth_favorite_is_rejected(self, persona_store):
        """Test adding a sixth favorite fails and leaves the list unchanged."""
        personas = [persona_store.create(f"Persona {n}") for n in range(6)]
        for persona in personas[:5]:
            persona_store.add_favorite(persona.id)

        with pytest.raises(FavoritesLimitError) as exc_info:
            persona_store.add_favorite(personas[5].id)

        assert exc_info.value.limit == 5
        assert persona_store.get_favorite_ids() == [p.id for p in personas[:5]]
        assert not persona_store.is_favorite(personas[5].id)

    def test_missing_entity_cannot_be_favorited(self, persona_store):
        with pytest.raises(NotFoundError):
            persona_store.add_favorite("missing")
        assert persona_store.get_favorite_ids() == []

    def test_capacity_checked_before_existence(self, persona_store):
        for n in range(5):
            persona_store.add_favorite(persona_store.create(f"Persona {n}").id)

        with pytest.raises(FavoritesLimitError):
            persona_store.add_favorite("missing")

    def test_toggle(self, persona_store, sample_persona):
        assert persona_store.toggle_favorite(sample_persona.id) is True
        assert persona_store.toggle_favorite(sample_persona.id) is False
        assert persona_store.get_favorite_ids() == []

    def test_favorites_keep_insertion_order(self, persona_store):
        a, b, c = (persona_store.create(name) for name in ("A", "B", "C"))
        for persona in (c, a, b):
            persona_store.add_favorite(persona.id)

        assert [p.name for p in persona_store.get_favorites()] == ["C", "A", "B"]

    def test_favorite_reindexes_unlisted_entity(self, persona_store, sample_persona):
        """Test an entity on disk but missing from the index is re-indexed when favorited."""
        persona_store.index.remove_entry(sample_persona.id)

        persona_store.add_favorite(sample_persona.id)

        entry = persona_store.index.get_entry(sample_persona.id)
        assert entry is not None
        assert entry.is_favorite is True

    def test_custom_capacity(self, blobs):
        store = PersonaFileStorage(blobs, max_favorites=1)
        first, second = store.create("A"), store.create("B")
        store.add_favorite(first.id)

        with pytest.raises(FavoritesLimitError):
            store.add_favorite(second.id)


class TestPromptHelpers:
    """Test persona prompt helpers."""

    def test_prompt_without_attributes(self, persona_store):
        persona = persona_store.create("Alice")

        assert persona_store.generate_prompt(persona) == 'Create a backstory for an individual named "Alice".'

    def test_prompt_lists_attributes(self, persona_store, sample_persona):
        prompt = persona_store.generate_prompt(sample_persona)

        assert prompt.startswith("Create a backstory for an individual that is described")
        assert "age: 34" in prompt
        assert "occupation: nurse" in prompt

    def test_copyable_text(self, persona_store, sample_persona):
        assert persona_store.get_copyable_text(sample_persona, "prompt") == persona_store.generate_prompt(sample_persona)
        assert persona_store.get_copyable_text(sample_persona, "backstory") is None

        stored = persona_store.update(sample_persona.id, {"generation_prompt": "Custom", "backstory": "Story"})
        assert persona_store.get_copyable_text(stored, "prompt") == "Custom"
        assert persona_store.get_copyable_text(stored, "backstory") == "Story"


class TestCollectionIsolation:
    """Test two collections on one blob store share nothing."""

    def test_stores_do_not_share_state(self, blobs):
        personas = PersonaFileStorage(blobs)
        feedback = FeedbackFileStorage(blobs)
        persona = personas.create("Alice")
        personas.add_favorite(persona.id)

        assert feedback.count() == 0
        assert feedback.get_favorite_ids() == []
        assert feedback.get_by_id(persona.id) is None
        assert len(feedback.cache) == 0
