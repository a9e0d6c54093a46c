from fastapi import APIRouter, Depends, Path, Query
from typing import List, Literal, Optional

from personaut.schemas.api_schemas import (
    DeleteResponse,
    FavoriteResponse,
    FeedbackDetail,
    FeedbackGenerate,
    FeedbackSummary,
    FeedbackUpdate,
)
from personaut.dependencies import get_feedback_service
from personaut.services.feedback_service import FeedbackService, GenerateFeedbackParams

router = APIRouter()


@router.get("/feedback", response_model=List[FeedbackSummary])
def list_feedback(
    q: Optional[str] = Query(None, description="Case-insensitive title filter"),
    persona: Optional[str] = Query(None, description="Only entries from this persona"),
    feedback_type: Optional[Literal["individual", "group"]] = Query(None, description="Only this feedback type"),
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Feedback history, newest first.
    """
    if q:
        entries = service.search(q)
    elif persona:
        entries = service.get_by_persona(persona)
    elif feedback_type:
        entries = service.get_by_type(feedback_type)
    else:
        entries = service.get_history()
    return [FeedbackSummary.from_entity(entry, service.is_favorite(entry.id)) for entry in entries]

@router.post("/feedback", response_model=FeedbackDetail, status_code=201)
def generate_feedback(
    feedback_data: FeedbackGenerate,
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Generate feedback from the given personas and store it in the history.
    """
    entry = service.generate_feedback(GenerateFeedbackParams(**feedback_data.model_dump()))
    return FeedbackDetail.from_entity(entry, False)

@router.delete("/feedback", response_model=DeleteResponse)
def clear_feedback_history(service: FeedbackService = Depends(get_feedback_service)):
    service.clear_history()
    return DeleteResponse(success=True)

@router.get("/feedback/favorites", response_model=List[FeedbackSummary])
def list_favorite_feedback(service: FeedbackService = Depends(get_feedback_service)):
    return [FeedbackSummary.from_entity(entry, True) for entry in service.get_favorites()]

@router.get("/feedback/{entry_id}", response_model=FeedbackDetail)
def get_feedback(
    entry_id: str = Path(..., title="The ID of the feedback entry to retrieve"),
    service: FeedbackService = Depends(get_feedback_service),
):
    entry = service.get(entry_id)
    return FeedbackDetail.from_entity(entry, service.is_favorite(entry.id))

@router.put("/feedback/{entry_id}", response_model=FeedbackDetail)
def update_feedback(
    feedback_data: FeedbackUpdate,
    entry_id: str = Path(..., title="The ID of the feedback entry to update"),
    service: FeedbackService = Depends(get_feedback_service),
):
    entry = service.update(entry_id, feedback_data.model_dump(exclude_unset=True))
    return FeedbackDetail.from_entity(entry, service.is_favorite(entry.id))

@router.delete("/feedback/{entry_id}", response_model=DeleteResponse)
def delete_feedback(
    entry_id: str = Path(..., title="The ID of the feedback entry to delete"),
    service: FeedbackService = Depends(get_feedback_service),
):
    service.delete(entry_id)
    return DeleteResponse(success=True)

@router.post("/feedback/{entry_id}/favorite/toggle", response_model=FavoriteResponse)
def toggle_favorite_feedback(
    entry_id: str = Path(..., title="The ID of the feedback entry to toggle"),
    service: FeedbackService = Depends(get_feedback_service),
):
    return FavoriteResponse(id=entry_id, is_favorite=service.toggle_favorite(entry_id))
