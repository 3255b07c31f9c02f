"""Asynchronous note-processing queue for AI-assisted clinical notes."""

# Public API - Configuration
from .config import Config

# Public API - Pydantic models and status
from .errors import ExternalServiceError, NotFoundError, QueueError, StateViolation
from .schemas import DispatchJob, NoteRef, ProcessingParameters, QueueEntryRecord, QueuePosition
from .status import QueueStatus, can_transition, transition

# Public API - Service implementations
from .clients import HTTPGenerationClient, HTTPTranslationClient
from .coordinator import QueueCoordinator
from .database import create_db_engine, create_session_factory, init_db
from .dispatcher import WorkerDispatcher
from .factory import build_coordinator
from .note_store import NoteStore, NoteStoreRegistry, SQLAlchemyNoteStore
from .notifier import QueueNotifier
from .positions import PositionCalculator
from .queue_store import QueueEntryRepository

__all__ = [
    # Configuration
    "Config",
    # Services
    "QueueCoordinator",
    "QueueEntryRepository",
    "PositionCalculator",
    "WorkerDispatcher",
    "QueueNotifier",
    "NoteStore",
    "NoteStoreRegistry",
    "SQLAlchemyNoteStore",
    "HTTPGenerationClient",
    "HTTPTranslationClient",
    "build_coordinator",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    # Pydantic Models
    "DispatchJob",
    "NoteRef",
    "ProcessingParameters",
    "QueueEntryRecord",
    "QueuePosition",
    # Status
    "QueueStatus",
    "can_transition",
    "transition",
    # Errors
    "QueueError",
    "StateViolation",
    "ExternalServiceError",
    "NotFoundError",
]
