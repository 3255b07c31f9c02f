"""Shared test fixtures for smartnote_queue tests."""

from __future__ import annotations

import os
import tempfile

# Config is read at import time
os.environ.setdefault("SMARTNOTE_DIR", tempfile.mkdtemp(prefix="smartnote_test_"))
os.environ.setdefault("BROADCAST_TYPE", "none")

from typing import TYPE_CHECKING, Any  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from smartnote_queue import (  # noqa: E402
    DispatchJob,
    ExternalServiceError,
    NoteStoreRegistry,
    ProcessingParameters,
    QueueCoordinator,
    QueueEntryRepository,
    QueueNotifier,
    SQLAlchemyNoteStore,
    WorkerDispatcher,
)
from smartnote_queue.models import Base  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqlalchemy.engine import Engine


NOTE_KIND = "OnDemandSmartNote"


# ============================================================================
# Test doubles
# ============================================================================


class RecordingBroadcaster:
    """Broadcaster that keeps every published event."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def connect(self) -> bool:
        return True

    def disconnect(self) -> None:
        pass

    def publish_event(self, event_type: str, entry_id: str, data: dict[str, Any]) -> bool:
        self.events.append({"event_type": event_type, "entry_id": entry_id, **data})
        return True

    def event_types(self, entry_id: str) -> list[str]:
        return [event["event_type"] for event in self.events if event["entry_id"] == entry_id]


class RecordingDispatcher:
    """Dispatcher that only records submitted jobs."""

    def __init__(self) -> None:
        self.jobs: list[DispatchJob] = []

    def submit(self, job: DispatchJob) -> None:
        self.jobs.append(job)


class FakeGenerator:
    """Generation service returning a fixed result or raising a fixed error."""

    def __init__(self, result: str = "Diagnosis: seasonal allergies", error: Exception | None = None):
        self.result: str = result
        self.error: Exception | None = error
        self.calls: list[tuple[ProcessingParameters, str]] = []

    def generate(self, params: ProcessingParameters, text: str) -> str:
        self.calls.append((params, text))
        if self.error is not None:
            raise self.error
        return self.result


class FakeTranslator:
    """Translation service that upper-cases text, or fails."""

    def __init__(self, fail: bool = False):
        self.fail: bool = fail
        self.calls: list[tuple[str, str]] = []

    def translate(self, text: str, target_language: str) -> str:
        self.calls.append((text, target_language))
        if self.fail:
            raise ExternalServiceError("translation", "service unavailable")
        return text.upper()


# ============================================================================
# Database fixtures
# ============================================================================


@pytest.fixture
def in_memory_engine() -> Generator[Engine, None, None]:
    """Create SQLite in-memory engine with all tables created.

    Yields:
        Engine: SQLAlchemy engine with in-memory SQLite database
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(in_memory_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=in_memory_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def repository(session_factory: sessionmaker[Session]) -> QueueEntryRepository:
    return QueueEntryRepository(session_factory)


@pytest.fixture
def note_store(session_factory: sessionmaker[Session]) -> SQLAlchemyNoteStore:
    return SQLAlchemyNoteStore(session_factory, kind=NOTE_KIND)


@pytest.fixture
def registry(note_store: SQLAlchemyNoteStore) -> NoteStoreRegistry:
    return NoteStoreRegistry({NOTE_KIND: note_store})


# ============================================================================
# Service fixtures
# ============================================================================


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def notifier(broadcaster: RecordingBroadcaster) -> QueueNotifier:
    return QueueNotifier(broadcaster)


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def recording_dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def coordinator(
    repository: QueueEntryRepository,
    registry: NoteStoreRegistry,
    recording_dispatcher: RecordingDispatcher,
    notifier: QueueNotifier,
) -> QueueCoordinator:
    """Coordinator whose dispatcher only records jobs, so entries stay Queued."""
    return QueueCoordinator(repository, registry, recording_dispatcher, notifier)


@pytest.fixture
def dispatcher(
    repository: QueueEntryRepository,
    registry: NoteStoreRegistry,
    generator: FakeGenerator,
    translator: FakeTranslator,
    notifier: QueueNotifier,
) -> Generator[WorkerDispatcher, None, None]:
    worker = WorkerDispatcher(
        repository,
        registry,
        generator,
        translator=translator,
        notifier=notifier,
        max_workers=1,
        target_language="en",
    )
    yield worker
    worker.shutdown()


@pytest.fixture
def make_note(note_store: SQLAlchemyNoteStore):
    """Factory creating notes in the SQLAlchemy note store."""

    def _make_note(owner_id: str = "doctor-1", text: str = "Paciente con tos seca") -> str:
        return note_store.create_note(owner_id, text, context_id="ctx-1", ai_environment="env-1")

    return _make_note
