"""
Health check endpoints for the API.
"""
import logging

from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime

from personaut.application.error_sanitizer import error_sanitizer
from personaut.config import settings
from personaut.dependencies import get_feedback_store, get_persona_store
from personaut.domain.errors import StorageError
from personaut.filestore.base import EntityFileStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_health(store: EntityFileStore) -> Dict[str, Any]:
    try:
        return {
            "status": "healthy",
            "collection": store.collection,
            "cached": len(store.cache),
            **store.get_stats(),
        }
    except StorageError as e:
        sanitized = error_sanitizer.sanitize(e, context=f"health/{store.collection}")
        logger.error(sanitized.log_message)
        return {
            "status": "unhealthy",
            "collection": store.collection,
            "error": sanitized.user_message,
        }

@router.get("/health")
def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.
    Returns API status and version information.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }

@router.get("/health/storage")
def storage_health(
    personas: EntityFileStore = Depends(get_persona_store),
    feedback: EntityFileStore = Depends(get_feedback_store),
) -> Dict[str, Any]:
    """
    Per-collection entity counts, favorites and index size.
    """
    collections = [_store_health(personas), _store_health(feedback)]
    overall = "healthy"
    if any(item["status"] == "unhealthy" for item in collections):
        overall = "unhealthy"

    return {
        "status": overall,
        "timestamp": datetime.now().isoformat(),
        "collections": collections,
    }
