from __future__ import annotations

import logging
from typing import Any, List, Optional

from personaut.domain.entities import FeedbackEntry, FeedbackType

from .base import EntityFileStore

logger = logging.getLogger(__name__)


class FeedbackFileStorage(EntityFileStore[FeedbackEntry]):
    """Feedback collection.

    Large fields live beside ``entity.json`` so the history is browsable on
    disk: ``context.txt``, ``output.md`` and ``screenshot.png``.
    """

    entity_model = FeedbackEntry
    default_collection = "feedback"
    entity_label = "Feedback entry"
    text_payloads = {"context": "context.txt", "content": "output.md"}
    binary_payloads = {"screenshot": "screenshot.png"}

    def create(
        self,
        title: str,
        feedback_type: FeedbackType = "individual",
        persona_names: Optional[List[str]] = None,
        **options: Any,
    ) -> FeedbackEntry:
        return super().create(
            title=title,
            feedback_type=feedback_type,
            persona_names=list(persona_names or []),
            **options,
        )

    def prune(self, max_entries: int) -> List[str]:
        """Delete the oldest non-favorite entries beyond max_entries; return their ids."""
        excess = self.count() - max_entries
        if excess <= 0:
            return []

        candidates = [entry for entry in reversed(self.list_entries()) if not entry.is_favorite]
        removed: List[str] = []
        for entry in candidates[:excess]:
            self.delete(entry.id)
            removed.append(entry.id)
        logger.info(f"Pruned {len(removed)} feedback entries beyond the history limit of {max_entries}")
        return removed
