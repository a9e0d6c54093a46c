"""Directory-per-entity file stores."""
from .base import EntityFileStore
from .cache import MemoryCache
from .feedback import FeedbackFileStorage
from .index import IndexStore
from .personas import PersonaFileStorage

__all__ = [
    "EntityFileStore",
    "FeedbackFileStorage",
    "IndexStore",
    "MemoryCache",
    "PersonaFileStorage",
]
