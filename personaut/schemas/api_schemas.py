"""
API Request/Response Schemas using Pydantic.

Structure of HTTP requests and responses for the Personaut store API.
Favorite state is never stored on entities; responses take it from the index.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from personaut.domain.entities import FeedbackEntry, Persona


# Persona schemas
class PersonaCreate(BaseModel):
    name: str = Field(..., description="Display name of the persona", min_length=1, max_length=255)
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Free-form persona traits")
    backstory: Optional[str] = Field(None, description="Narrative backstory")
    additional_context: Optional[str] = Field(None, description="Extra context for generation")

class PersonaUpdate(BaseModel):
    name: Optional[str] = Field(None, description="New display name", min_length=1, max_length=255)
    attributes: Optional[Dict[str, Any]] = Field(None, description="Replacement attributes")
    backstory: Optional[str] = Field(None, description="Replacement backstory")
    additional_context: Optional[str] = Field(None, description="Replacement extra context")

class PersonaResponse(BaseModel):
    id: str = Field(..., description="Unique identifier of the persona")
    name: str = Field(..., description="Display name")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Persona traits")
    backstory: Optional[str] = Field(None, description="Narrative backstory")
    additional_context: Optional[str] = Field(None, description="Extra context")
    generation_prompt: Optional[str] = Field(None, description="Prompt used for the last backstory")
    created_at: int = Field(..., description="Creation time, epoch milliseconds")
    updated_at: int = Field(..., description="Last change, epoch milliseconds")
    version_number: int = Field(..., description="Regenerate counter, starts at 1")
    is_favorite: bool = Field(False, description="Whether the persona is a favorite")

    @classmethod
    def from_entity(cls, persona: Persona, is_favorite: bool) -> "PersonaResponse":
        return cls(
            id=persona.id,
            name=persona.name,
            attributes=persona.attributes,
            backstory=persona.backstory,
            additional_context=persona.additional_context,
            generation_prompt=persona.generation_prompt,
            created_at=persona.created_at,
            updated_at=persona.updated_at,
            version_number=persona.version_number,
            is_favorite=is_favorite,
        )

class PromptResponse(BaseModel):
    prompt: str = Field(..., description="Backstory generation prompt")

class CopyableTextResponse(BaseModel):
    field: Literal["prompt", "backstory"]
    text: Optional[str] = Field(None, description="Text to copy, empty when the field is unset")


# Feedback schemas
class FeedbackGenerate(BaseModel):
    persona_names: List[str] = Field(..., description="Personas giving feedback")
    context: str = Field(..., description="What is being tested")
    url: str = Field(..., description="URL under test")
    feedback_type: Literal["individual", "group"] = Field("individual", description="Individual or group feedback")
    persona_ids: Optional[List[str]] = Field(None, description="Ids of the personas, when known")
    screenshot: Optional[str] = Field(None, description="PNG screenshot as a base64 data URL")
    provider: Optional[str] = Field(None, description="Provider label recorded with the entry")
    model: Optional[str] = Field(None, description="Model label recorded with the entry")

class FeedbackUpdate(BaseModel):
    title: Optional[str] = Field(None, description="New listing title", min_length=1)
    rating: Optional[int] = Field(None, description="User rating", ge=1, le=5)

class FeedbackSummary(BaseModel):
    id: str
    title: str
    feedback_type: str
    persona_names: List[str] = Field(default_factory=list)
    url: str = ""
    created_at: int
    is_favorite: bool = False

    @classmethod
    def from_entity(cls, entry: FeedbackEntry, is_favorite: bool) -> "FeedbackSummary":
        return cls(
            id=entry.id,
            title=entry.title,
            feedback_type=entry.feedback_type,
            persona_names=entry.persona_names,
            url=entry.url,
            created_at=entry.created_at,
            is_favorite=is_favorite,
        )

class FeedbackDetail(FeedbackSummary):
    context: str = ""
    content: str = ""
    screenshot: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    rating: Optional[int] = None
    error: Optional[str] = None
    updated_at: int

    @classmethod
    def from_entity(cls, entry: FeedbackEntry, is_favorite: bool) -> "FeedbackDetail":
        return cls(
            **FeedbackSummary.from_entity(entry, is_favorite).model_dump(),
            context=entry.context,
            content=entry.content,
            screenshot=entry.screenshot,
            provider=entry.provider,
            model=entry.model,
            rating=entry.rating,
            error=entry.error,
            updated_at=entry.updated_at,
        )


# Shared schemas
class FavoriteResponse(BaseModel):
    id: str = Field(..., description="Entity id")
    is_favorite: bool = Field(..., description="Favorite state after the call")

class DeleteResponse(BaseModel):
    success: bool = Field(default=True, description="Whether the deletion was successful")

class CollectionStats(BaseModel):
    count: int
    favorites_count: int
    index_size_bytes: int
