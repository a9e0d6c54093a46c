"""One-shot import of legacy flat collections into the file stores."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as SchemaError

from personaut.domain.entities import StoredModel, now_ms
from personaut.domain.errors import DomainError, FavoritesLimitError, StorageError
from personaut.domain.events import MigrationCompleted, event_publisher
from personaut.domain.legacy import (
    LegacyFeedbackEntry,
    LegacyPersona,
    feedback_fields_from_legacy,
    feedback_identity,
    persona_fields_from_legacy,
    persona_identity,
)
from personaut.domain.ports import LegacyKeyValueSource
from personaut.filestore.base import EntityFileStore

logger = logging.getLogger(__name__)

MIGRATION_MARKER = ".migration_v2"
MIGRATION_PROGRESS = ".migration_progress"
MIGRATION_VERSION = 2


class MigrationState(str, Enum):
    NOT_NEEDED = "not_needed"
    NEEDS_MIGRATION = "needs_migration"
    MIGRATED = "migrated"


@dataclass(frozen=True)
class MigrationPlan:
    """Where a collection's legacy data lives and how it maps to entities."""
    record_keys: Tuple[str, ...]
    legacy_model: type[StoredModel]
    to_fields: Callable[[Any], Dict[str, Any]]
    identity: Callable[[Any], Optional[str]]
    favorites_key: Optional[str] = None
    # Cleared alongside the others after a clean run, never read.
    stale_keys: Tuple[str, ...] = ()

    @property
    def all_keys(self) -> Tuple[str, ...]:
        keys = self.record_keys + self.stale_keys
        if self.favorites_key:
            keys += (self.favorites_key,)
        return keys


PERSONA_MIGRATION = MigrationPlan(
    # The key was renamed between releases; either may hold data.
    record_keys=("personaut.customerProfiles", "personaut.personas"),
    legacy_model=LegacyPersona,
    to_fields=persona_fields_from_legacy,
    identity=persona_identity,
    favorites_key="personaut.favoritePersonas",
    stale_keys=("personaut.favorites",),
)

FEEDBACK_MIGRATION = MigrationPlan(
    record_keys=("feedbackHistory",),
    legacy_model=LegacyFeedbackEntry,
    to_fields=feedback_fields_from_legacy,
    identity=feedback_identity,
)


@dataclass
class MigrationResult:
    success: bool = True
    migrated: int = 0
    favorites_migrated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class MigrationService:
    """Imports one collection from the legacy key-value source exactly once.

    Completion is recorded by a marker file in the collection directory, so
    a completed migration never reruns. A run with per-record errors leaves
    the marker unset and the legacy data in place. Each created entity is
    recorded under its legacy identity in a progress file next to the
    marker, and the next run skips exactly those records.
    """

    def __init__(self, legacy: LegacyKeyValueSource, store: EntityFileStore, plan: MigrationPlan) -> None:
        self._legacy = legacy
        self._store = store
        self._plan = plan
        self.marker_path = f"{store.collection}/{MIGRATION_MARKER}"
        self.progress_path = f"{store.collection}/{MIGRATION_PROGRESS}"

    def is_migrated(self) -> bool:
        return self._store.storage.exists(self.marker_path)

    def state(self) -> MigrationState:
        if self.is_migrated():
            return MigrationState.MIGRATED
        for key in self._plan.record_keys:
            if self._raw_records(key):
                return MigrationState.NEEDS_MIGRATION
        return MigrationState.NOT_NEEDED

    def needs_migration(self) -> bool:
        return self.state() is MigrationState.NEEDS_MIGRATION

    def _raw_records(self, key: str) -> List[Any]:
        value = self._legacy.get(key, [])
        if isinstance(value, list):
            return value
        logger.warning(f"Legacy key {key} does not hold a list, ignoring it")
        return []

    def _unique_records(self, result: MigrationResult) -> List[Any]:
        unique: Dict[str, Any] = {}
        for key in self._plan.record_keys:
            for raw in self._raw_records(key):
                if not isinstance(raw, dict):
                    result.warnings.append(f"Dropped non-object legacy record under {key}")
                    continue
                try:
                    record = self._plan.legacy_model.model_validate(raw)
                except SchemaError as e:
                    result.warnings.append(f"Dropped unreadable legacy record under {key}: {e.error_count()} errors")
                    continue
                identity = self._plan.identity(record)
                if not identity:
                    result.warnings.append(f"Dropped legacy record under {key} with neither id nor name")
                    continue
                unique.setdefault(identity, record)
        return list(unique.values())

    def _legacy_favorites(self) -> set:
        if not self._plan.favorites_key:
            return set()
        value = self._legacy.get(self._plan.favorites_key, [])
        if not isinstance(value, list):
            return set()
        return {item for item in value if isinstance(item, str)}

    def _load_progress(self) -> Dict[str, str]:
        """Legacy identity to entity id for records created by earlier runs."""
        data = self._store.storage.read_json(self.progress_path)
        if not isinstance(data, dict) or not isinstance(data.get("migrated"), dict):
            return {}
        return {str(key): str(value) for key, value in data["migrated"].items()}

    def _save_progress(self, progress: Dict[str, str]) -> None:
        self._store.storage.write_json(self.progress_path, {"migrated": progress})

    def migrate(self) -> MigrationResult:
        """Create store entities for every unique legacy record."""
        result = MigrationResult()
        collection = self._store.collection
        if not self.needs_migration():
            logger.info(f"No {collection} migration needed")
            return result

        try:
            records = self._unique_records(result)
            for warning in result.warnings:
                logger.warning(f"[{collection}] {warning}")
            if not records:
                logger.info(f"No {collection} records to migrate")
                return result

            favorites = self._legacy_favorites()
            progress = self._load_progress()
            count_before = self._store.count()
            logger.info(f"Starting migration of {len(records)} {collection} records...")

            for record in records:
                label = self._plan.identity(record)
                if label in progress:
                    logger.info(f"Skipping legacy {collection} record {label}: migrated by an earlier run")
                    result.skipped += 1
                    continue
                try:
                    entity = self._store.create(**self._plan.to_fields(record))
                except (DomainError, StorageError) as e:
                    message = f"Failed to migrate {collection} record {label}: {e}"
                    logger.error(message)
                    result.errors.append(message)
                    continue

                progress[label] = entity.id
                self._save_progress(progress)
                result.migrated += 1

                if getattr(record, "id", None) in favorites:
                    try:
                        self._store.add_favorite(entity.id)
                        result.favorites_migrated += 1
                    except FavoritesLimitError:
                        logger.warning(f"Favorite {label} dropped during migration: favorites limit reached")

            expected = count_before + len(records) - result.skipped
            actual = self._store.count()
            if actual != expected:
                warning = f"Migration verification warning: expected {expected}, got {actual}"
                logger.warning(f"[{collection}] {warning}")
                result.warnings.append(warning)

            logger.info(
                f"{collection} migration complete: {result.migrated} migrated, "
                f"{result.favorites_migrated} favorites, {result.skipped} skipped"
            )
        except (DomainError, StorageError) as e:
            result.success = False
            result.errors.append(f"Migration failed: {e}")
            logger.error(f"{collection} migration failed: {e}")

        return result

    def mark_complete(self) -> None:
        self._store.storage.write_json(
            self.marker_path,
            {"migrated": True, "timestamp": now_ms(), "version": MIGRATION_VERSION},
        )
        self._store.storage.delete(self.progress_path)
        logger.info(f"{self._store.collection} migration marked as complete")

    def clear_legacy(self) -> None:
        for key in self._plan.all_keys:
            self._legacy.clear(key)
        logger.info(f"Cleared legacy {self._store.collection} keys")

    def run_if_needed(self) -> Optional[MigrationResult]:
        """Migrate, then mark complete and clear legacy keys if no record failed."""
        if not self.needs_migration():
            logger.info(f"No {self._store.collection} migration needed")
            return None

        logger.info(f"{self._store.collection} migration needed, starting...")
        result = self.migrate()

        if result.success and not result.errors:
            self.mark_complete()
            try:
                self.clear_legacy()
            except StorageError as e:
                # The marker is written, so stale legacy keys are never read again.
                warning = f"Legacy {self._store.collection} keys not cleared: {e}"
                logger.warning(warning)
                result.warnings.append(warning)
            event_publisher.publish(MigrationCompleted(
                event_id="",
                timestamp=None,
                aggregate_id=self._store.collection,
                collection=self._store.collection,
                migrated=result.migrated,
                favorites_migrated=result.favorites_migrated,
                skipped=result.skipped,
            ))
        else:
            logger.warning(
                f"{self._store.collection} migration left incomplete with {len(result.errors)} errors; "
                "it will be retried on next start"
            )
        return result

    def reset_migration_flag(self) -> None:
        """Remove the completion marker so the next start migrates again."""
        self._store.storage.delete(self.marker_path)
        self._store.storage.delete(self.progress_path)
        logger.info(f"{self._store.collection} migration flag reset")
