"""Wiring of the queue components from Config."""

from sqlalchemy.orm import Session, sessionmaker

from .clients import GenerationService, HTTPGenerationClient, HTTPTranslationClient, TranslationService
from .config import Config
from .coordinator import QueueCoordinator
from .dispatcher import WorkerDispatcher
from .note_store import NoteStoreRegistry
from .notifier import QueueNotifier
from .queue_store import QueueEntryRepository


def build_coordinator(
    session_factory: sessionmaker[Session],
    registry: NoteStoreRegistry,
    generator: GenerationService | None = None,
    translator: TranslationService | None = None,
    notifier: QueueNotifier | None = None,
) -> QueueCoordinator:
    """Create a coordinator with its repository, dispatcher and notifier.

    Services not passed in are built from Config. Translation is skipped
    entirely when TRANSLATION_ENABLED is false.

    Example:
        engine = create_db_engine(Config.QUEUE_DATABASE_URL)
        init_db(engine)
        session_factory = create_session_factory(engine)

        registry = NoteStoreRegistry()
        registry.register("OnDemandSmartNote", SQLAlchemyNoteStore(session_factory))

        coordinator = build_coordinator(session_factory, registry)
    """
    repository = QueueEntryRepository(session_factory)
    notifier = notifier if notifier is not None else QueueNotifier()

    if generator is None:
        generator = HTTPGenerationClient(
            Config.GENERATION_URL,
            api_key=Config.GENERATION_API_KEY or None,
            timeout=Config.GENERATION_TIMEOUT,
        )
    if translator is None and Config.TRANSLATION_ENABLED:
        translator = HTTPTranslationClient(Config.TRANSLATION_URL, timeout=Config.TRANSLATION_TIMEOUT)

    dispatcher = WorkerDispatcher(
        repository,
        registry,
        generator,
        translator=translator,
        notifier=notifier,
        max_workers=Config.WORKER_MAX_CONCURRENCY,
        target_language=Config.TRANSLATION_TARGET_LANGUAGE,
    )
    return QueueCoordinator(repository, registry, dispatcher, notifier)
