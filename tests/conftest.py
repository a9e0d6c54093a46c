"""
Test configuration and fixtures for personaut-store tests.
"""
import itertools

import pytest
from fastapi.testclient import TestClient

from personaut.main import app
from personaut.dependencies import get_feedback_store, get_persona_store, get_text_generator
from personaut.domain.events import event_publisher
from personaut.filestore import FeedbackFileStorage, PersonaFileStorage
from personaut.infrastructure.legacy_state import InMemoryKeyValueSource
from personaut.storage.filesystem import FilesystemStorage


class FakeGenerator:
    """Text generator double that records prompts and returns a fixed reply."""

    def __init__(self, reply: str = "Generated text.") -> None:
        self.reply = reply
        self.prompts = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.reply


@pytest.fixture(autouse=True)
def clean_event_publisher():
    """The publisher is a process-wide singleton; isolate subscribers per test."""
    event_publisher.clear_subscribers()
    yield
    event_publisher.clear_subscribers()


@pytest.fixture
def clock(monkeypatch):
    """Deterministic, strictly increasing millisecond clock for the stores."""
    ticks = itertools.count(1_700_000_000_000, 1000)
    monkeypatch.setattr("personaut.filestore.base.now_ms", lambda: next(ticks))
    return ticks


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def blobs(storage_root):
    """Filesystem blob storage rooted in a temporary directory."""
    return FilesystemStorage(storage_root)


@pytest.fixture
def persona_store(blobs):
    store = PersonaFileStorage(blobs)
    store.initialize()
    return store


@pytest.fixture
def feedback_store(blobs):
    store = FeedbackFileStorage(blobs)
    store.initialize()
    return store


@pytest.fixture
def legacy_source():
    return InMemoryKeyValueSource()


@pytest.fixture
def make_generator():
    """Factory for generator doubles with a chosen reply."""
    return FakeGenerator


@pytest.fixture
def generator():
    return FakeGenerator("Alice grew up by the sea.")


@pytest.fixture
def client(persona_store, feedback_store, generator):
    """Create test client wired to temporary stores."""
    app.dependency_overrides[get_persona_store] = lambda: persona_store
    app.dependency_overrides[get_feedback_store] = lambda: feedback_store
    app.dependency_overrides[get_text_generator] = lambda: generator
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_persona(persona_store):
    """Create a sample persona for testing."""
    return persona_store.create("Alice", {"age": 34, "occupation": "nurse"})
