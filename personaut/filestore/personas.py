from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from personaut.domain.entities import Persona

from .base import EntityFileStore


class PersonaFileStorage(EntityFileStore[Persona]):
    """Persona collection: ``personas/{id}/entity.json`` holds the whole persona."""

    entity_model = Persona
    default_collection = "personas"
    entity_label = "Persona"

    def create(self, name: str, attributes: Optional[Dict[str, Any]] = None, **options: Any) -> Persona:
        return super().create(name=name, attributes=dict(attributes or {}), **options)

    @staticmethod
    def generate_prompt(persona: Persona) -> str:
        """Natural-language backstory prompt built from the persona's attributes."""
        if not persona.attributes:
            return f'Create a backstory for an individual named "{persona.name}".'
        descriptions = ", ".join(f"{key}: {value}" for key, value in persona.attributes.items())
        return (
            "Create a backstory for an individual that is described with the following "
            f"characteristics, traits, or demographics: {descriptions}"
        )

    def get_copyable_text(self, persona: Persona, field: Literal["prompt", "backstory"]) -> Optional[str]:
        if field == "prompt":
            return persona.generation_prompt or self.generate_prompt(persona)
        if field == "backstory":
            return persona.backstory
        return None
