from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from personaut.domain.entities import FeedbackEntry, FeedbackType
from personaut.domain.errors import ValidationError
from personaut.domain.events import EntityCreated, event_publisher
from personaut.domain.legacy import derive_title
from personaut.domain.ports import TextGenerator
from personaut.filestore.feedback import FeedbackFileStorage

from .base import EntityAppService

logger = logging.getLogger(__name__)


@dataclass
class GenerateFeedbackParams:
    persona_names: List[str]
    context: str
    url: str
    feedback_type: FeedbackType = "individual"
    persona_ids: Optional[List[str]] = None
    screenshot: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    extra_instructions: List[str] = field(default_factory=list)


def build_feedback_prompt(params: GenerateFeedbackParams) -> str:
    """Prompt asking the personas to react to the page under test."""
    names = ", ".join(params.persona_names)
    if params.feedback_type == "group":
        audience = f"a group of users ({names})"
        ask = "Give each user's reaction in their own voice, then 3-5 concrete recommendations."
    else:
        audience = f"the user {names}"
        ask = "Give honest first-person feedback: what works, what is confusing, what you would change."
    lines = [
        f"You are {audience} reviewing a web page.",
        f'Context for this test: "{params.context}"',
        f"URL tested: {params.url}",
        ask,
        *params.extra_instructions,
    ]
    return "\n".join(lines)


class FeedbackService(EntityAppService[FeedbackEntry]):
    """Feedback generation and capped history."""

    def __init__(self, store: FeedbackFileStorage, generator: TextGenerator, max_history: int = 100) -> None:
        super().__init__(store)
        self._feedback = store
        self._generator = generator
        self.max_history = max_history

    @staticmethod
    def validate_params(params: GenerateFeedbackParams) -> None:
        if not params.persona_names:
            raise ValidationError("At least one persona is required")
        if not params.context or not params.context.strip():
            raise ValidationError("Context is required")
        if not params.url or not params.url.strip():
            raise ValidationError("URL is required")

    def generate_feedback(self, params: GenerateFeedbackParams) -> FeedbackEntry:
        """Validate, generate and store one feedback entry, then trim history."""
        self.validate_params(params)

        logger.info(f"Generating {params.feedback_type} feedback for {len(params.persona_names)} persona(s)")
        content = self._generator.generate(build_feedback_prompt(params))

        entry = self._feedback.create(
            title=derive_title(params.context),
            feedback_type=params.feedback_type,
            persona_names=params.persona_names,
            persona_ids=params.persona_ids,
            context=params.context,
            url=params.url,
            content=content,
            screenshot=params.screenshot,
            provider=params.provider,
            model=params.model,
        )
        event_publisher.publish(EntityCreated(
            event_id="",
            timestamp=None,
            aggregate_id=entry.id,
            collection=self.collection,
            name=entry.title,
        ))

        self._feedback.prune(self.max_history)
        return entry

    def get_history(self) -> List[FeedbackEntry]:
        return self.list_all()

    def get_by_persona(self, persona_name: str) -> List[FeedbackEntry]:
        return [entry for entry in self.list_all() if persona_name in entry.persona_names]

    def get_by_type(self, feedback_type: FeedbackType) -> List[FeedbackEntry]:
        return [entry for entry in self.list_all() if entry.feedback_type == feedback_type]

    def clear_history(self) -> None:
        self._feedback.clear_all()
