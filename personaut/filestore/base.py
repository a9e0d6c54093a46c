"""Directory-per-entity store with a cached listing index.

Layout for a collection ``c``::

    c/index.json            listing index and favorites
    c/{id}/entity.json      full entity document
    c/{id}/<payload files>  large fields declared by the collection
"""
from __future__ import annotations

import logging
import re
import uuid
from typing import Any, ClassVar, Dict, Generic, List, Mapping, Optional, TypeVar

from pydantic import ValidationError as SchemaError

from personaut.domain.entities import (
    DATA_URL_PREFIX,
    ENTITY_FILE_VERSION,
    MAX_FAVORITES,
    Entity,
    IndexEntry,
    StoreStats,
    now_ms,
)
from personaut.domain.errors import NotFoundError, ValidationError
from personaut.storage.interface import BlobStorage

from .cache import MemoryCache
from .index import IndexStore

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)

ENTITY_FILE = "entity.json"
SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at", "version_number"})


class EntityFileStore(Generic[EntityT]):
    """CRUD, search, favorites and regenerate for one entity collection."""

    entity_model: ClassVar[type[Entity]]
    default_collection: ClassVar[str]
    entity_label: ClassVar[str] = "Entity"
    # field name -> file name inside the entity directory
    text_payloads: ClassVar[Dict[str, str]] = {}
    binary_payloads: ClassVar[Dict[str, str]] = {}

    def __init__(
        self,
        blobs: BlobStorage,
        collection: Optional[str] = None,
        max_favorites: int = MAX_FAVORITES,
    ) -> None:
        self._blobs = blobs
        self.collection = collection or self.default_collection
        self._index = IndexStore(blobs, self.collection, max_favorites)
        self._cache: MemoryCache[EntityT] = MemoryCache()

    @property
    def storage(self) -> BlobStorage:
        return self._blobs

    @property
    def index(self) -> IndexStore:
        return self._index

    @property
    def cache(self) -> MemoryCache[EntityT]:
        return self._cache

    def entity_dir(self, entity_id: str) -> str:
        return f"{self.collection}/{entity_id}"

    # --------------- Lifecycle ---------------
    def initialize(self) -> None:
        """Create the collection directory and load the index."""
        logger.info(f"Initializing {self.collection} store")
        self._blobs.ensure_directory(self.collection)
        self._index.load()
        logger.info(f"{self.collection} store initialized with {self._index.count()} entries")

    def preload_cache(self) -> int:
        """Decode every indexed entity into the memory cache."""
        entities = self.get_all()
        logger.info(f"Loaded {len(entities)} {self.collection} entries into cache")
        return len(entities)

    def clear_cache(self) -> None:
        """Forget cached entities and the cached index; next access re-reads disk."""
        self._cache.clear()
        self._index.invalidate()

    # --------------- CRUD ---------------
    def create(self, **fields: Any) -> EntityT:
        self._check_fields(fields)
        now = now_ms()
        entity = self._build({
            **fields,
            "id": str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
            "version_number": 1,
        })
        self._save(entity)
        return entity

    def get_by_id(self, entity_id: str) -> Optional[EntityT]:
        if not SAFE_ID.match(entity_id or ""):
            return None

        cached = self._cache.get(entity_id)
        if cached is not None:
            return cached

        document = self._blobs.read_json(f"{self.entity_dir(entity_id)}/{ENTITY_FILE}")
        if not isinstance(document, dict):
            logger.debug(f"{self.entity_label} {entity_id} not found on disk")
            return None

        entity = self._decode(entity_id, document)
        if entity is not None:
            self._cache.set(entity_id, entity)
        return entity

    def get_all(self) -> List[EntityT]:
        entities: List[EntityT] = []
        for entry in self._index.entries:
            entity = self.get_by_id(entry.id)
            if entity is not None:
                entities.append(entity)
        return sorted(entities, key=lambda item: item.updated_at, reverse=True)

    def search(self, query: str) -> List[EntityT]:
        needle = query.lower()
        return [entity for entity in self.get_all() if needle in entity.display_name.lower()]

    def update(self, entity_id: str, changes: Mapping[str, Any]) -> Optional[EntityT]:
        entity = self.get_by_id(entity_id)
        if entity is None:
            return None
        self._check_fields(changes)
        updated = self._build({
            **entity.model_dump(),
            **changes,
            "updated_at": self._next_timestamp(entity),
        })
        self._save(updated)
        return updated

    def regenerate(self, entity_id: str, changes: Mapping[str, Any]) -> Optional[EntityT]:
        """Overwrite fields as a new version: bumps versionNumber, keeps id and createdAt."""
        entity = self.get_by_id(entity_id)
        if entity is None:
            return None
        self._check_fields(changes)
        regenerated = self._build({
            **entity.model_dump(),
            **changes,
            "version_number": entity.version_number + 1,
            "updated_at": self._next_timestamp(entity),
        })
        self._save(regenerated)
        return regenerated

    def delete(self, entity_id: str) -> bool:
        if not SAFE_ID.match(entity_id or ""):
            return False
        existed = self._blobs.delete_directory(self.entity_dir(entity_id))
        self._index.remove_entry(entity_id)
        self._index.remove_favorite_id(entity_id)
        self._cache.delete(entity_id)
        return existed

    def count(self) -> int:
        return self._index.count()

    def list_entries(self) -> List[IndexEntry]:
        """Listing metadata straight from the index, without loading entities."""
        return self._index.entries

    def clear_all(self) -> None:
        for entry in self._index.entries:
            self._blobs.delete_directory(self.entity_dir(entry.id))
        self._index.reset()
        self._cache.clear()
        logger.info(f"Cleared all {self.collection} entries")

    def get_stats(self) -> StoreStats:
        return StoreStats(
            count=self._index.count(),
            favorites_count=len(self._index.favorite_ids),
            index_size_bytes=self._index.size_bytes(),
        )

    # --------------- Favorites ---------------
    def is_favorite(self, entity_id: str) -> bool:
        return self._index.is_favorite(entity_id)

    def get_favorite_ids(self) -> List[str]:
        return self._index.favorite_ids

    def get_favorites_count(self) -> int:
        return len(self._index.favorite_ids)

    def get_favorites(self) -> List[EntityT]:
        """Favorite entities in the order they were favorited."""
        favorites: List[EntityT] = []
        for favorite_id in self._index.favorite_ids:
            entity = self.get_by_id(favorite_id)
            if entity is not None:
                favorites.append(entity)
        return favorites

    def add_favorite(self, entity_id: str) -> None:
        """Add to favorites.

        Raises:
            FavoritesLimitError: the favorites list is already full
            NotFoundError: the entity does not exist
        """
        if self._index.is_favorite(entity_id):
            return
        self._index.check_favorite_capacity(entity_id)
        entity = self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.entity_label} not found: {entity_id}")
        self._index.add_favorite_id(entity_id)
        if self._index.get_entry(entity_id) is None:
            # Entity on disk but missing from the listing; re-index it.
            self._index.upsert_entry(IndexEntry.from_entity(entity))

    def remove_favorite(self, entity_id: str) -> None:
        self._index.remove_favorite_id(entity_id)

    def toggle_favorite(self, entity_id: str) -> bool:
        """Flip favorite membership and return the new state."""
        if self._index.is_favorite(entity_id):
            self.remove_favorite(entity_id)
            return False
        self.add_favorite(entity_id)
        return True

    # --------------- Internal helpers ---------------
    def _check_fields(self, fields: Mapping[str, Any]) -> None:
        protected = PROTECTED_FIELDS.intersection(fields)
        if protected:
            raise ValidationError(f"Fields cannot be set directly: {', '.join(sorted(protected))}")
        unknown = set(fields) - set(self.entity_model.model_fields)
        if unknown:
            raise ValidationError(f"Unknown {self.entity_label.lower()} fields: {', '.join(sorted(unknown))}")

    def _build(self, data: Mapping[str, Any]) -> EntityT:
        try:
            return self.entity_model.model_validate(data)  # type: ignore[return-value]
        except SchemaError as e:
            raise ValidationError(f"Invalid {self.entity_label.lower()}: {e}") from e

    @staticmethod
    def _next_timestamp(entity: Entity) -> int:
        # updatedAt must move forward even when two writes share a millisecond
        return max(now_ms(), entity.updated_at + 1)

    def _alias(self, field: str) -> str:
        return self.entity_model.model_fields[field].alias or field

    def _decode(self, entity_id: str, document: Dict[str, Any]) -> Optional[EntityT]:
        data = dict(document.get("entity", document))
        entity_dir = self.entity_dir(entity_id)

        for field, filename in self.text_payloads.items():
            text = self._blobs.read_text(f"{entity_dir}/{filename}")
            if text is not None:
                data[self._alias(field)] = text

        for field, filename in self.binary_payloads.items():
            encoded = self._blobs.read_base64(f"{entity_dir}/{filename}")
            if encoded:
                data[self._alias(field)] = f"data:image/png;base64,{encoded}"

        try:
            entity = self.entity_model.model_validate(data)
        except SchemaError as e:
            logger.warning(f"Skipping unreadable {self.entity_label.lower()} {entity_id}: {e}")
            return None
        if entity.id != entity_id:
            logger.warning(f"{self.entity_label} document in {entity_dir} carries id {entity.id}")
            return None
        return entity  # type: ignore[return-value]

    def _save(self, entity: EntityT) -> None:
        entity_dir = self.entity_dir(entity.id)
        document = entity.to_document()
        for field in (*self.text_payloads, *self.binary_payloads):
            document.pop(self._alias(field), None)

        self._blobs.write_json(
            f"{entity_dir}/{ENTITY_FILE}",
            {"version": ENTITY_FILE_VERSION, "entity": document},
        )

        for field, filename in self.text_payloads.items():
            value = getattr(entity, field)
            if value:
                self._blobs.write_text(f"{entity_dir}/{filename}", value)
            else:
                self._blobs.delete(f"{entity_dir}/{filename}")

        for field, filename in self.binary_payloads.items():
            value = getattr(entity, field)
            if value:
                self._blobs.write_base64(f"{entity_dir}/{filename}", DATA_URL_PREFIX.sub("", value))
            else:
                self._blobs.delete(f"{entity_dir}/{filename}")

        self._index.upsert_entry(IndexEntry.from_entity(entity))
        self._cache.set(entity.id, entity)
