"""Domain events for decoupled side effects and integrations."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for all domain events."""
    event_id: str
    timestamp: datetime
    aggregate_id: str

    def __post_init__(self):
        if not self.event_id:
            self.event_id = str(uuid4())
        if not self.timestamp:
            self.timestamp = datetime.now()


@dataclass
class EntityCreated(DomainEvent):
    """Raised when a persona or feedback entry is created."""
    collection: str
    name: str


@dataclass
class EntityUpdated(DomainEvent):
    """Raised on an ordinary field update."""
    collection: str
    name: str


@dataclass
class EntityRegenerated(DomainEvent):
    """Raised when an entity is regenerated to a new version."""
    collection: str
    name: str
    version_number: int


@dataclass
class EntityDeleted(DomainEvent):
    """Raised when an entity directory is removed."""
    collection: str


@dataclass
class FavoriteAdded(DomainEvent):
    collection: str


@dataclass
class FavoriteRemoved(DomainEvent):
    collection: str


@dataclass
class MigrationCompleted(DomainEvent):
    """Raised once legacy data for a collection has been imported and cleared."""
    collection: str
    migrated: int
    favorites_migrated: int
    skipped: int


class DomainEventPublisher:
    """Singleton publisher for domain events."""

    _instance: DomainEventPublisher | None = None
    _subscribers: Dict[type, List[Callable[[DomainEvent], None]]]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._subscribers = {}
        return cls._instance

    def subscribe(self, event_type: type[DomainEvent], handler: Callable[[DomainEvent], None]) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Publish an event to all subscribers."""
        event_type = type(event)
        for handler in self._subscribers.get(event_type, []):
            try:
                handler(event)
            except Exception:
                # Log error but don't fail the main operation
                logger.exception(f"Event handler error for {event_type.__name__}")

    def clear_subscribers(self) -> None:
        """Clear all subscribers (useful for testing)."""
        self._subscribers = {}


# Singleton instance
event_publisher = DomainEventPublisher()
