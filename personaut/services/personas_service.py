from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from personaut.domain.entities import Persona
from personaut.domain.errors import GenerationError, ValidationError
from personaut.domain.events import EntityCreated, EntityRegenerated, event_publisher
from personaut.domain.ports import TextGenerator
from personaut.filestore.personas import PersonaFileStorage

from .base import EntityAppService

logger = logging.getLogger(__name__)


class PersonasService(EntityAppService[Persona]):
    """Persona use cases: CRUD, favorites and backstory generation."""

    def __init__(self, store: PersonaFileStorage, generator: TextGenerator) -> None:
        super().__init__(store)
        self._personas = store
        self._generator = generator

    def create(self, name: str, attributes: Optional[Dict[str, Any]] = None, **options: Any) -> Persona:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Persona name is required")

        persona = self._personas.create(name, attributes, **options)
        event_publisher.publish(EntityCreated(
            event_id="",
            timestamp=None,
            aggregate_id=persona.id,
            collection=self.collection,
            name=persona.name,
        ))
        return persona

    def generate_prompt(self, persona_id: str) -> str:
        return self._personas.generate_prompt(self.get(persona_id))

    def get_copyable_text(self, persona_id: str, field: Literal["prompt", "backstory"]) -> Optional[str]:
        return self._personas.get_copyable_text(self.get(persona_id), field)

    def generate_backstory(self, persona_id: str) -> Persona:
        """Ask the generator for a backstory and store it as a new version."""
        persona = self.get(persona_id)
        prompt = self._personas.generate_prompt(persona)

        logger.info(f"Generating backstory for persona {persona_id}")
        backstory = self._generator.generate(prompt)
        if not backstory or not backstory.strip():
            raise GenerationError("Text generation returned an empty backstory")

        regenerated = self._personas.regenerate(
            persona_id,
            {"backstory": backstory.strip(), "generation_prompt": prompt},
        )
        if regenerated is None:
            # Deleted while the generator was running.
            return self.get(persona_id)

        event_publisher.publish(EntityRegenerated(
            event_id="",
            timestamp=None,
            aggregate_id=regenerated.id,
            collection=self.collection,
            name=regenerated.name,
            version_number=regenerated.version_number,
        ))
        return regenerated
