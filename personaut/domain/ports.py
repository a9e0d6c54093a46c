"""Abstractions the application layer depends on."""
from __future__ import annotations

from typing import Any, Protocol


class LegacyKeyValueSource(Protocol):
    """Host key-value store that held collections before the file layout."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def clear(self, key: str) -> None: ...


class TextGenerator(Protocol):
    """Opaque AI text generation capability."""

    def generate(self, prompt: str) -> str: ...
