from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError as SchemaError

from personaut.domain.entities import MAX_FAVORITES, EntityIndex, IndexEntry, now_ms
from personaut.domain.errors import FavoritesLimitError, StorageError
from personaut.storage.interface import BlobStorage

logger = logging.getLogger(__name__)


class IndexStore:
    """JSON-backed listing index for one collection.

    The document is read once, kept in memory, and rewritten in full after
    every mutation. Favorites membership lives here and nowhere else; each
    entry's ``is_favorite`` flag is kept equal to membership in
    ``favorite_ids``.
    """

    def __init__(self, blobs: BlobStorage, collection: str, max_favorites: int = MAX_FAVORITES) -> None:
        self._blobs = blobs
        self.collection = collection
        self.index_path = f"{collection}/index.json"
        self.max_favorites = max_favorites
        self._index: Optional[EntityIndex] = None

    def load(self) -> EntityIndex:
        if self._index is None:
            self._index = self._read()
        return self._index

    def _read(self) -> EntityIndex:
        try:
            raw = self._blobs.read_json(self.index_path)
        except StorageError as e:
            logger.warning(f"Could not read {self.index_path}, starting empty: {e}")
            raw = None

        if isinstance(raw, dict):
            try:
                return self._normalize(EntityIndex.model_validate(raw))
            except SchemaError as e:
                logger.warning(f"Malformed index {self.index_path}, starting empty: {e}")
        elif raw is not None:
            logger.warning(f"Unexpected index document in {self.index_path}, starting empty")

        logger.debug(f"Creating new index for {self.collection}")
        return EntityIndex()

    def _normalize(self, index: EntityIndex) -> EntityIndex:
        favorite_ids: List[str] = []
        for favorite_id in index.favorite_ids:
            if favorite_id not in favorite_ids:
                favorite_ids.append(favorite_id)
        if len(favorite_ids) > self.max_favorites:
            logger.warning(
                f"Index {self.index_path} lists {len(favorite_ids)} favorites, above the limit of {self.max_favorites}"
            )
        index.favorite_ids = favorite_ids

        seen = set()
        entries: List[IndexEntry] = []
        for entry in index.entries:
            if entry.id in seen:
                continue
            seen.add(entry.id)
            entry.is_favorite = entry.id in favorite_ids
            entries.append(entry)
        index.entries = entries
        return index

    def save(self) -> None:
        index = self.load()
        index.last_updated = now_ms()
        self._blobs.write_json(self.index_path, index.to_document())

    def invalidate(self) -> None:
        """Drop the in-memory copy so the next access re-reads the file."""
        self._index = None

    def reset(self) -> None:
        self._index = EntityIndex()
        self.save()

    # --------------- Entries ---------------
    @property
    def entries(self) -> List[IndexEntry]:
        return [entry.model_copy() for entry in self.load().entries]

    def count(self) -> int:
        return len(self.load().entries)

    def get_entry(self, entity_id: str) -> Optional[IndexEntry]:
        for entry in self.load().entries:
            if entry.id == entity_id:
                return entry
        return None

    def upsert_entry(self, entry: IndexEntry) -> None:
        index = self.load()
        entry = entry.model_copy(update={"is_favorite": entry.id in index.favorite_ids})
        for position, existing in enumerate(index.entries):
            if existing.id == entry.id:
                index.entries[position] = entry
                break
        else:
            # Front, so entries sharing a millisecond still list newest first.
            index.entries.insert(0, entry)
        index.entries.sort(key=lambda item: item.updated_at, reverse=True)
        self.save()

    def remove_entry(self, entity_id: str) -> bool:
        index = self.load()
        remaining = [entry for entry in index.entries if entry.id != entity_id]
        if len(remaining) == len(index.entries):
            return False
        index.entries = remaining
        self.save()
        return True

    # --------------- Favorites ---------------
    @property
    def favorite_ids(self) -> List[str]:
        return list(self.load().favorite_ids)

    def is_favorite(self, entity_id: str) -> bool:
        return entity_id in self.load().favorite_ids

    def check_favorite_capacity(self, entity_id: str) -> None:
        """Raise FavoritesLimitError if entity_id cannot join the favorites."""
        index = self.load()
        if entity_id not in index.favorite_ids and len(index.favorite_ids) >= self.max_favorites:
            raise FavoritesLimitError(self.max_favorites)

    def add_favorite_id(self, entity_id: str) -> bool:
        index = self.load()
        if entity_id in index.favorite_ids:
            return False
        self.check_favorite_capacity(entity_id)
        index.favorite_ids.append(entity_id)
        entry = self.get_entry(entity_id)
        if entry is not None:
            entry.is_favorite = True
        self.save()
        return True

    def remove_favorite_id(self, entity_id: str) -> bool:
        index = self.load()
        if entity_id not in index.favorite_ids:
            return False
        index.favorite_ids = [fid for fid in index.favorite_ids if fid != entity_id]
        entry = self.get_entry(entity_id)
        if entry is not None:
            entry.is_favorite = False
        self.save()
        return True

    def size_bytes(self) -> int:
        return self._blobs.size(self.index_path) or 0
