from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from personaut.config import settings
from personaut.application.migration_service import (
    FEEDBACK_MIGRATION,
    PERSONA_MIGRATION,
    MigrationService,
)
from personaut.domain.ports import LegacyKeyValueSource, TextGenerator
from personaut.filestore.feedback import FeedbackFileStorage
from personaut.filestore.personas import PersonaFileStorage
from personaut.infrastructure.legacy_state import JsonFileKeyValueSource
from personaut.services.feedback_service import FeedbackService
from personaut.services.generation import UnavailableTextGenerator
from personaut.services.personas_service import PersonasService
from personaut.storage.factory import get_storage
from personaut.storage.interface import BlobStorage


# Stores own their cache and index, so one instance per collection lives
# for the whole process.
@lru_cache
def get_blob_storage() -> BlobStorage:
    return get_storage()


@lru_cache
def get_persona_store() -> PersonaFileStorage:
    return PersonaFileStorage(
        get_blob_storage(),
        collection=settings.PERSONAS_COLLECTION,
        max_favorites=settings.MAX_FAVORITES,
    )


@lru_cache
def get_feedback_store() -> FeedbackFileStorage:
    return FeedbackFileStorage(
        get_blob_storage(),
        collection=settings.FEEDBACK_COLLECTION,
        max_favorites=settings.MAX_FAVORITES,
    )


@lru_cache
def get_legacy_source() -> LegacyKeyValueSource:
    return JsonFileKeyValueSource(Path(settings.LEGACY_STATE_FILE))


def get_text_generator() -> TextGenerator:
    return UnavailableTextGenerator()


def get_migration_services() -> list[MigrationService]:
    legacy = get_legacy_source()
    return [
        MigrationService(legacy, get_persona_store(), PERSONA_MIGRATION),
        MigrationService(legacy, get_feedback_store(), FEEDBACK_MIGRATION),
    ]


def get_personas_service(
    store: PersonaFileStorage = Depends(get_persona_store),
    generator: TextGenerator = Depends(get_text_generator),
) -> PersonasService:
    return PersonasService(store=store, generator=generator)


def get_feedback_service(
    store: FeedbackFileStorage = Depends(get_feedback_store),
    generator: TextGenerator = Depends(get_text_generator),
) -> FeedbackService:
    return FeedbackService(
        store=store,
        generator=generator,
        max_history=settings.FEEDBACK_MAX_HISTORY,
    )
