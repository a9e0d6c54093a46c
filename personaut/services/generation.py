"""Default text generator used when the host wires no AI provider."""
from __future__ import annotations

import logging

from personaut.domain.errors import GenerationError

logger = logging.getLogger(__name__)


class UnavailableTextGenerator:
    """Refuses every request; hosts override ``get_text_generator`` with a real provider."""

    def generate(self, prompt: str) -> str:
        logger.warning("Text generation requested but no provider is configured")
        raise GenerationError("No text generation provider configured")
