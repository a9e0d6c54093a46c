from fastapi import APIRouter, Depends, Path, Query
from typing import List, Literal, Optional

from personaut.schemas.api_schemas import (
    CopyableTextResponse,
    DeleteResponse,
    FavoriteResponse,
    PersonaCreate,
    PersonaResponse,
    PersonaUpdate,
    PromptResponse,
)
from personaut.dependencies import get_personas_service
from personaut.services.personas_service import PersonasService

router = APIRouter()


def _respond(service: PersonasService, persona) -> PersonaResponse:
    return PersonaResponse.from_entity(persona, service.is_favorite(persona.id))


@router.get("/personas", response_model=List[PersonaResponse])
def list_personas(
    q: Optional[str] = Query(None, description="Case-insensitive name filter"),
    service: PersonasService = Depends(get_personas_service),
):
    """
    List personas, most recently updated first.
    """
    personas = service.search(q) if q else service.list_all()
    return [_respond(service, persona) for persona in personas]

@router.post("/personas", response_model=PersonaResponse, status_code=201)
def create_persona(
    persona_data: PersonaCreate,
    service: PersonasService = Depends(get_personas_service),
):
    """
    Create a persona from a name and free-form attributes.
    """
    options = persona_data.model_dump(exclude={"name", "attributes"}, exclude_none=True)
    persona = service.create(persona_data.name, persona_data.attributes, **options)
    return _respond(service, persona)

@router.get("/personas/favorites", response_model=List[PersonaResponse])
def list_favorite_personas(service: PersonasService = Depends(get_personas_service)):
    """
    Favorite personas in the order they were favorited.
    """
    return [PersonaResponse.from_entity(persona, True) for persona in service.get_favorites()]

@router.get("/personas/{persona_id}", response_model=PersonaResponse)
def get_persona(
    persona_id: str = Path(..., title="The ID of the persona to retrieve"),
    service: PersonasService = Depends(get_personas_service),
):
    return _respond(service, service.get(persona_id))

@router.put("/personas/{persona_id}", response_model=PersonaResponse)
def update_persona(
    persona_data: PersonaUpdate,
    persona_id: str = Path(..., title="The ID of the persona to update"),
    service: PersonasService = Depends(get_personas_service),
):
    """
    Update persona fields; only fields present in the body change.
    """
    persona = service.update(persona_id, persona_data.model_dump(exclude_unset=True))
    return _respond(service, persona)

@router.delete("/personas/{persona_id}", response_model=DeleteResponse)
def delete_persona(
    persona_id: str = Path(..., title="The ID of the persona to delete"),
    service: PersonasService = Depends(get_personas_service),
):
    """
    Delete a persona directory and drop it from the index and favorites.
    """
    service.delete(persona_id)
    return DeleteResponse(success=True)

@router.put("/personas/{persona_id}/favorite", response_model=FavoriteResponse)
def add_favorite_persona(
    persona_id: str = Path(..., title="The ID of the persona to favorite"),
    service: PersonasService = Depends(get_personas_service),
):
    service.add_favorite(persona_id)
    return FavoriteResponse(id=persona_id, is_favorite=True)

@router.delete("/personas/{persona_id}/favorite", response_model=FavoriteResponse)
def remove_favorite_persona(
    persona_id: str = Path(..., title="The ID of the persona to unfavorite"),
    service: PersonasService = Depends(get_personas_service),
):
    service.remove_favorite(persona_id)
    return FavoriteResponse(id=persona_id, is_favorite=False)

@router.post("/personas/{persona_id}/favorite/toggle", response_model=FavoriteResponse)
def toggle_favorite_persona(
    persona_id: str = Path(..., title="The ID of the persona to toggle"),
    service: PersonasService = Depends(get_personas_service),
):
    return FavoriteResponse(id=persona_id, is_favorite=service.toggle_favorite(persona_id))

@router.get("/personas/{persona_id}/prompt", response_model=PromptResponse)
def get_persona_prompt(
    persona_id: str = Path(..., title="The ID of the persona"),
    service: PersonasService = Depends(get_personas_service),
):
    return PromptResponse(prompt=service.generate_prompt(persona_id))

@router.get("/personas/{persona_id}/copy/{field}", response_model=CopyableTextResponse)
def get_persona_copyable_text(
    field: Literal["prompt", "backstory"],
    persona_id: str = Path(..., title="The ID of the persona"),
    service: PersonasService = Depends(get_personas_service),
):
    return CopyableTextResponse(field=field, text=service.get_copyable_text(persona_id, field))

@router.post("/personas/{persona_id}/backstory", response_model=PersonaResponse)
def generate_persona_backstory(
    persona_id: str = Path(..., title="The ID of the persona"),
    service: PersonasService = Depends(get_personas_service),
):
    """
    Generate a new backstory; the persona's version number increases by one.
    """
    return _respond(service, service.generate_backstory(persona_id))
