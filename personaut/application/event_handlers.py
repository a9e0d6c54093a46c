"""Event handlers for domain events."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from personaut.domain.events import (
        EntityCreated,
        EntityDeleted,
        EntityRegenerated,
        EntityUpdated,
        FavoriteAdded,
        FavoriteRemoved,
        MigrationCompleted,
    )

logger = logging.getLogger(__name__)


class AuditLogHandler:
    """Logs all domain events for audit trail."""

    def handle_entity_created(self, event: EntityCreated) -> None:
        logger.info(f"[AUDIT] {event.collection} created: {event.aggregate_id} - {event.name}")

    def handle_entity_updated(self, event: EntityUpdated) -> None:
        logger.info(f"[AUDIT] {event.collection} updated: {event.aggregate_id} - {event.name}")

    def handle_entity_regenerated(self, event: EntityRegenerated) -> None:
        logger.info(
            f"[AUDIT] {event.collection} regenerated: {event.aggregate_id} - {event.name} "
            f"(version {event.version_number})"
        )

    def handle_entity_deleted(self, event: EntityDeleted) -> None:
        logger.info(f"[AUDIT] {event.collection} deleted: {event.aggregate_id}")

    def handle_favorite_added(self, event: FavoriteAdded) -> None:
        logger.info(f"[AUDIT] {event.collection} favorite added: {event.aggregate_id}")

    def handle_favorite_removed(self, event: FavoriteRemoved) -> None:
        logger.info(f"[AUDIT] {event.collection} favorite removed: {event.aggregate_id}")

    def handle_migration_completed(self, event: MigrationCompleted) -> None:
        logger.info(
            f"[AUDIT] {event.collection} migration completed: {event.migrated} migrated, "
            f"{event.favorites_migrated} favorites, {event.skipped} skipped"
        )


def register_event_handlers():
    """Register all event handlers with the publisher."""
    from personaut.domain.events import (
        EntityCreated,
        EntityDeleted,
        EntityRegenerated,
        EntityUpdated,
        FavoriteAdded,
        FavoriteRemoved,
        MigrationCompleted,
        event_publisher,
    )

    audit = AuditLogHandler()

    event_publisher.subscribe(EntityCreated, audit.handle_entity_created)
    event_publisher.subscribe(EntityUpdated, audit.handle_entity_updated)
    event_publisher.subscribe(EntityRegenerated, audit.handle_entity_regenerated)
    event_publisher.subscribe(EntityDeleted, audit.handle_entity_deleted)
    event_publisher.subscribe(FavoriteAdded, audit.handle_favorite_added)
    event_publisher.subscribe(FavoriteRemoved, audit.handle_favorite_removed)
    event_publisher.subscribe(MigrationCompleted, audit.handle_migration_completed)
