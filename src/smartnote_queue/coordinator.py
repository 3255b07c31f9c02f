"""Queue coordinator: the single entry point for enqueuing note-processing work."""

import logging
from collections.abc import Iterable
from typing import Protocol

from .errors import NotFoundError
from .note_store import NoteStoreRegistry
from .notifier import QueueNotifier
from .positions import PositionCalculator
from .queue_store import QueueEntryRepository
from .schemas import DispatchJob, QueueEntryRecord, QueuePosition
from .status import QueueStatus

logger = logging.getLogger(__name__)


class Dispatcher(Protocol):
    def submit(self, job: DispatchJob) -> object: ...


class QueueCoordinator:
    """Creates entries, hands them to the dispatcher and answers queue queries.

    Example:
        coordinator = QueueCoordinator(repository, registry, dispatcher, notifier)

        entry = coordinator.enqueue("42", "OnDemandSmartNote", owner_id="7", note_text=text)
        coordinator.list_active_for_owner("7")
        coordinator.get_latest_status("42", "OnDemandSmartNote")
    """

    def __init__(
        self,
        repository: QueueEntryRepository,
        registry: NoteStoreRegistry,
        dispatcher: Dispatcher,
        notifier: QueueNotifier | None = None,
    ):
        self.repository: QueueEntryRepository = repository
        self.registry: NoteStoreRegistry = registry
        self.dispatcher: Dispatcher = dispatcher
        self.notifier: QueueNotifier = notifier if notifier is not None else QueueNotifier()
        self.positions: PositionCalculator = PositionCalculator(repository, registry)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def enqueue(
        self, note_id: str, note_kind: str, owner_id: str, note_text: str
    ) -> QueueEntryRecord:
        """Persist a Queued entry and hand it to the dispatcher without waiting.

        Raises:
            NotFoundError: If the note kind is unknown or the note does not exist
        """
        store = self.registry.get(note_kind)
        if not store.exists(str(note_id)):
            raise NotFoundError(f"{note_kind} not found: {note_id}")

        entry = self.repository.create(str(note_id), note_kind, str(owner_id))
        self.notifier.entry_changed(entry)

        job = DispatchJob(
            entry_id=entry.entry_id,
            note_id=entry.note_id,
            note_kind=entry.note_kind,
            owner_id=entry.owner_id,
            note_text=note_text,
        )
        try:
            _ = self.dispatcher.submit(job)
        except Exception:
            # The entry stays Queued; regenerate creates a fresh one
            logger.exception(f"Failed to dispatch entry {entry.entry_id}")
            raise

        logger.info(f"Queued entry {entry.entry_id} for {note_kind}:{note_id} (owner {owner_id})")
        return entry

    def regenerate(
        self, note_id: str, note_kind: str, owner_id: str, note_text: str
    ) -> QueueEntryRecord:
        """Submit a note again.

        Always a new entry; earlier entries of the note, terminal or not,
        are left untouched.
        """
        return self.enqueue(note_id, note_kind, owner_id, note_text)

    def delete_queue_entry(self, entry_id: str) -> None:
        """Remove one entry.

        Raises:
            NotFoundError: If the entry does not exist
            StateViolation: If the entry is In-Progress
        """
        self.repository.delete(entry_id)
        logger.info(f"Deleted queue entry {entry_id}")

    def delete_note_entries(self, note_id: str, note_kind: str) -> int:
        """Remove all entries of a deleted note.

        Raises:
            StateViolation: If one of the note's entries is In-Progress
        """
        return self.repository.delete_all_for(str(note_id), note_kind)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_active_for_owner(self, owner_id: str) -> list[QueuePosition]:
        return self.positions.positions_for_owner(owner_id)

    def get_latest_status(self, note_id: str, note_kind: str) -> QueueStatus | None:
        entry = self.repository.find_latest_for(str(note_id), note_kind)
        return entry.status if entry else None

    def get_latest_statuses(
        self, note_ids: Iterable[str], note_kind: str
    ) -> dict[str, QueueStatus]:
        latest = self.repository.latest_for_notes(note_ids, note_kind)
        return {note_id: entry.status for note_id, entry in latest.items()}

    def has_active_entry(
        self, note_id: str, note_kind: str, owner_id: str | None = None
    ) -> bool:
        return self.repository.has_active_entry(str(note_id), note_kind, owner_id)
