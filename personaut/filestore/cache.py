from __future__ import annotations

from typing import Dict, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


class MemoryCache(Generic[T]):
    """Process-lifetime map from entity id to decoded entity.

    Only valid while this process is the single writer of the collection;
    nothing invalidates it when files change underneath.
    """

    def __init__(self) -> None:
        self._items: Dict[str, T] = {}

    def get(self, entity_id: str) -> Optional[T]:
        return self._items.get(entity_id)

    def set(self, entity_id: str, value: T) -> None:
        self._items[entity_id] = value

    def delete(self, entity_id: str) -> None:
        self._items.pop(entity_id, None)

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)
