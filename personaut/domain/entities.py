"""Persisted entity models.

Documents are stored with camelCase keys (``versionNumber``, ``createdAt``)
and exposed to Python with snake_case attributes.
"""
from __future__ import annotations

import base64
import re
import time
from typing import Any, ClassVar, Dict, List, Literal, Optional, TypedDict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

INDEX_VERSION = 1
ENTITY_FILE_VERSION = 1
MAX_FAVORITES = 5
DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class StoredModel(BaseModel):
    """Base for every model written to or read from disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Entity(StoredModel):
    """Immutable-id record with timestamps and a regenerate version."""

    model_config = ConfigDict(frozen=True)

    # Field shown in listings and matched by search.
    display_field: ClassVar[str]

    id: str
    created_at: int
    updated_at: int
    version_number: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def _check_timestamps(self) -> "Entity":
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not precede createdAt")
        return self

    @property
    def display_name(self) -> str:
        return getattr(self, self.display_field)


class Persona(Entity):
    display_field: ClassVar[str] = "name"

    name: str
    attributes: Dict[str, Any] = Field(default_factory=dict)
    backstory: Optional[str] = None
    additional_context: Optional[str] = None
    generation_prompt: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    api_used: Optional[str] = None
    model_used: Optional[str] = None


FeedbackType = Literal["individual", "group"]


class FeedbackEntry(Entity):
    display_field: ClassVar[str] = "title"

    title: str
    feedback_type: FeedbackType = "individual"
    persona_names: List[str] = Field(default_factory=list)
    persona_ids: Optional[List[str]] = None
    context: str = ""
    url: str = ""
    content: str = ""
    screenshot: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    rating: Optional[int] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    error: Optional[str] = None

    @field_validator("screenshot")
    @classmethod
    def _check_screenshot(cls, value: Optional[str]) -> Optional[str]:
        if value:
            base64.b64decode(DATA_URL_PREFIX.sub("", value), validate=True)
        return value


class IndexEntry(StoredModel):
    """Projection of an entity sufficient for listing."""

    id: str
    name: str
    version_number: int = 1
    created_at: int
    updated_at: int
    is_favorite: bool = False

    @classmethod
    def from_entity(cls, entity: Entity, is_favorite: bool = False) -> "IndexEntry":
        return cls(
            id=entity.id,
            name=entity.display_name,
            version_number=entity.version_number,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            is_favorite=is_favorite,
        )


class EntityIndex(StoredModel):
    """Collection-wide index document (``index.json``)."""

    version: int = INDEX_VERSION
    last_updated: int = Field(default_factory=now_ms)
    # Older persona indexes listed their entries under "personas".
    entries: List[IndexEntry] = Field(
        default_factory=list, validation_alias=AliasChoices("entries", "personas")
    )
    favorite_ids: List[str] = Field(default_factory=list)


class StoreStats(TypedDict):
    count: int
    favorites_count: int
    index_size_bytes: int
