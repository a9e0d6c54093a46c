"""Domain error hierarchy for clean exception handling."""
from __future__ import annotations


class DomainError(Exception):
    """Base for all domain errors."""


class NotFoundError(DomainError):
    """Entity not found."""


class ValidationError(DomainError):
    """Invalid input or state."""


class FavoritesLimitError(DomainError):
    """Adding a favorite would exceed the favorites capacity."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Cannot add more than {limit} favorites")
        self.limit = limit


class GenerationError(DomainError):
    """The text generation provider failed or is not configured."""


class StorageError(Exception):
    """Infrastructure failure while reading or writing the blob store.

    Raised by the blob adapter for permission, disk-full and similar I/O
    failures. The stores never retry; callers decide whether to surface it.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
