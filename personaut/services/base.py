from __future__ import annotations

from typing import Any, Generic, List, Mapping, TypeVar

from personaut.domain.entities import Entity
from personaut.domain.errors import NotFoundError
from personaut.domain.events import (
    EntityDeleted,
    EntityUpdated,
    FavoriteAdded,
    FavoriteRemoved,
    event_publisher,
)
from personaut.filestore.base import EntityFileStore

EntityT = TypeVar("EntityT", bound=Entity)


class EntityAppService(Generic[EntityT]):
    """Application service over one entity store.

    The store reports a missing entity as ``None``/``False``; this layer turns
    that into ``NotFoundError`` and publishes domain events for every change.
    """

    def __init__(self, store: EntityFileStore[EntityT]) -> None:
        self._store = store

    @property
    def store(self) -> EntityFileStore[EntityT]:
        return self._store

    @property
    def collection(self) -> str:
        return self._store.collection

    def list_all(self) -> List[EntityT]:
        return self._store.get_all()

    def search(self, query: str) -> List[EntityT]:
        return self._store.search(query)

    def get(self, entity_id: str) -> EntityT:
        entity = self._store.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self._store.entity_label} not found: {entity_id}")
        return entity

    def update(self, entity_id: str, changes: Mapping[str, Any]) -> EntityT:
        updated = self._store.update(entity_id, changes)
        if updated is None:
            raise NotFoundError(f"{self._store.entity_label} not found: {entity_id}")
        event_publisher.publish(EntityUpdated(
            event_id="",
            timestamp=None,
            aggregate_id=updated.id,
            collection=self.collection,
            name=updated.display_name,
        ))
        return updated

    def delete(self, entity_id: str) -> None:
        if not self._store.delete(entity_id):
            raise NotFoundError(f"{self._store.entity_label} not found: {entity_id}")
        event_publisher.publish(EntityDeleted(
            event_id="",
            timestamp=None,
            aggregate_id=entity_id,
            collection=self.collection,
        ))

    def is_favorite(self, entity_id: str) -> bool:
        return self._store.is_favorite(entity_id)

    def get_favorites(self) -> List[EntityT]:
        return self._store.get_favorites()

    def get_favorite_ids(self) -> List[str]:
        return self._store.get_favorite_ids()

    def add_favorite(self, entity_id: str) -> None:
        if self._store.is_favorite(entity_id):
            return
        self._store.add_favorite(entity_id)
        event_publisher.publish(FavoriteAdded(
            event_id="",
            timestamp=None,
            aggregate_id=entity_id,
            collection=self.collection,
        ))

    def remove_favorite(self, entity_id: str) -> None:
        if not self._store.is_favorite(entity_id):
            return
        self._store.remove_favorite(entity_id)
        event_publisher.publish(FavoriteRemoved(
            event_id="",
            timestamp=None,
            aggregate_id=entity_id,
            collection=self.collection,
        ))

    def toggle_favorite(self, entity_id: str) -> bool:
        """Flip favorite membership and return the new state."""
        if self._store.is_favorite(entity_id):
            self.remove_favorite(entity_id)
            return False
        self.add_favorite(entity_id)
        return True
