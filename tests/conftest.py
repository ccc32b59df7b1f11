import os
# Keep tests hermetic: in-memory storage, no narrative provider, plain logs.
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["NARRATIVE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from reactassess.components.adaptive.catalog import ExerciseCatalog
from reactassess.components.profile.schemas import NarrativeVerdict
from reactassess.components.storage.memory import MemoryStore
from reactassess.deps import get_catalog, get_event_emitter, get_narrative_generator, get_store
from reactassess.main import app
from reactassess.platform.config import TerminalParserConfig

FIXED_NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class RecordingEmitter:
    def __init__(self):
        self.events = []

    def emit(self, event_type, payload):
        self.events.append((event_type, payload))

    def types(self):
        return [event_type.value for event_type, _ in self.events]


class StaticNarrative:
    """Narrative generator double returning a fixed verdict and recording payloads."""

    def __init__(self, verdict=None):
        self.verdict = verdict or NarrativeVerdict(
            narrative="AI COLLABORATION PROFILE\nModified most suggestions.",
            recommendation="hire",
            labels=["verifies output"],
        )
        self.payloads = []

    def generate(self, payload):
        self.payloads.append(payload)
        return self.verdict


@pytest.fixture
def parser_config():
    return TerminalParserConfig(
        assistant_command="claude",
        shell_prompt_markers=("candidate@sandbox",),
        prompt_debounce_chars=100,
    )


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def emitter():
    return RecordingEmitter()


@pytest.fixture
def static_narrative():
    return StaticNarrative()


@pytest.fixture
def catalog():
    return ExerciseCatalog.builtin()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def client(memory_store, emitter):
    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_event_emitter] = lambda: emitter
    app.dependency_overrides[get_narrative_generator] = lambda: None
    app.dependency_overrides[get_catalog] = ExerciseCatalog.builtin
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
