"""Legacy record shapes from the flat key-value store and their mappings.

Older releases kept every collection as one array under a single key, and
the record shape drifted between releases, so every field is optional.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from .entities import StoredModel
from .errors import ValidationError

TITLE_MAX_LENGTH = 50


class LegacyPersona(StoredModel):
    id: Optional[str] = None
    name: Optional[str] = None
    backstory: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None
    additional_context: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    version_number: Optional[int] = None
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class LegacyFeedbackEntry(StoredModel):
    id: Optional[str] = None
    title: Optional[str] = None
    timestamp: Optional[int] = None
    feedback_type: Optional[str] = None
    persona_names: Optional[List[str]] = None
    # Single-persona entries from before group feedback existed.
    persona_name: Optional[str] = None
    context: Optional[str] = None
    url: Optional[str] = None
    content: Optional[str] = None
    screenshot: Optional[str] = None
    provider: Optional[str] = None
    error: Optional[str] = None


def derive_title(context: str) -> str:
    """Listing title for a feedback entry, cut from its context."""
    if len(context) > TITLE_MAX_LENGTH:
        return context[:TITLE_MAX_LENGTH] + "..."
    return context


def persona_identity(record: LegacyPersona) -> Optional[str]:
    return record.id or record.name


def feedback_identity(record: LegacyFeedbackEntry) -> Optional[str]:
    return record.id or record.title or derive_title(record.context or "") or None


def persona_fields_from_legacy(record: LegacyPersona) -> Dict[str, Any]:
    """Map a legacy persona onto ``PersonaFileStorage.create`` keyword arguments."""
    if not record.name:
        raise ValidationError("Legacy persona has no name")

    fields: Dict[str, Any] = {
        "name": record.name,
        "attributes": dict(record.attributes or {}),
    }
    optional = {
        "backstory": record.backstory,
        "additional_context": record.additional_context,
        "input_tokens": record.input_tokens,
        "output_tokens": record.output_tokens,
        "total_tokens": record.total_tokens,
    }
    fields.update({key: value for key, value in optional.items() if value is not None})
    return fields


def feedback_fields_from_legacy(record: LegacyFeedbackEntry) -> Dict[str, Any]:
    """Map a legacy feedback entry onto ``FeedbackFileStorage.create`` keyword arguments."""
    persona_names = list(record.persona_names or [])
    if not persona_names and record.persona_name:
        persona_names = [record.persona_name]

    title = record.title or derive_title(record.context or "")
    if not title:
        raise ValidationError("Legacy feedback entry has neither title nor context")

    feedback_type = record.feedback_type
    if feedback_type not in ("individual", "group"):
        feedback_type = "group" if len(persona_names) > 1 else "individual"

    fields: Dict[str, Any] = {
        "title": title,
        "feedback_type": feedback_type,
        "persona_names": persona_names,
        "context": record.context or "",
        "url": record.url or "",
        "content": record.content or "",
    }
    optional = {
        "screenshot": record.screenshot,
        "provider": record.provider,
        "error": record.error,
    }
    fields.update({key: value for key, value in optional.items() if value is not None})
    return fields
