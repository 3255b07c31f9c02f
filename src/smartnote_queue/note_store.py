"""Note stores: the per-kind collaborators the queue reads from and writes to.

Several note kinds share one queue. Each kind registers a ``NoteStore`` in a
``NoteStoreRegistry`` and every queue call carries the kind explicitly.
"""

import logging
import time
from typing import Protocol, override, runtime_checkable

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from .errors import NotFoundError
from .models import ResultHistory, SmartNote
from .schemas import NoteRef, ProcessingParameters

logger = logging.getLogger(__name__)


@runtime_checkable
class NoteStore(Protocol):
    """Contract the queue needs from a note kind."""

    def exists(self, note_id: str) -> bool: ...

    def get_label(self, note_id: str) -> str | None: ...

    def get_processing_parameters(self, note_id: str) -> ProcessingParameters: ...

    def get_result(self, note_id: str) -> str | None: ...

    def write_result(self, note_id: str, result: str, edited_by: str | None = None) -> None:
        """Store ``result`` on the note.

        A result the note already held is appended to the result history,
        attributed to ``edited_by``, in the same transaction as the write.
        """
        ...

    def append_result_history(
        self, note_id: str, previous_result: str | None, edited_by: str | None
    ) -> None: ...


class NoteStoreRegistry:
    """Maps a note kind (e.g. ``"OnDemandSmartNote"``) to its NoteStore."""

    def __init__(self, stores: dict[str, NoteStore] | None = None):
        self._stores: dict[str, NoteStore] = dict(stores or {})

    def register(self, kind: str, store: NoteStore) -> None:
        self._stores[kind] = store

    def get(self, kind: str) -> NoteStore:
        """Return the store for ``kind``.

        Raises:
            NotFoundError: If no store is registered for the kind
        """
        try:
            return self._stores[kind]
        except KeyError:
            raise NotFoundError(f"Unknown note kind: {kind}") from None

    def kinds(self) -> list[str]:
        return sorted(self._stores)

    def note_ref(self, kind: str, note_id: str) -> NoteRef:
        """Build a NoteRef, with the store's label when the note can be resolved."""
        label: str | None = None
        store = self._stores.get(kind)
        if store is not None:
            label = store.get_label(note_id)
        return NoteRef(kind=kind, id=str(note_id), label=label)


class SQLAlchemyNoteStore(NoteStore):
    """NoteStore backed by the ``smart_notes`` and ``result_history`` tables.

    Args:
        session_factory: SQLAlchemy session factory (sessionmaker)
        kind: Note kind recorded in result history rows
        label_length: Labels are the first ``label_length`` characters of the note
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        kind: str = "OnDemandSmartNote",
        label_length: int = 80,
    ):
        self.session_factory: sessionmaker[Session] = session_factory
        self.kind: str = kind
        self.label_length: int = label_length

    def create_note(
        self,
        owner_id: str,
        note: str,
        context_id: str | None = None,
        ai_environment: str | None = None,
        ai_direct: bool = False,
    ) -> str:
        """Insert a note and return its id."""
        with self.session_factory() as session:
            db_note = SmartNote(
                owner_id=str(owner_id),
                note=note,
                context_id=context_id,
                ai_environment=ai_environment,
                ai_direct=ai_direct,
                created_at=int(time.time() * 1000),
            )
            session.add(db_note)
            session.commit()
            return str(db_note.id)

    def _load(self, session: Session, note_id: str) -> SmartNote:
        db_note = session.get(SmartNote, self._pk(note_id))
        if db_note is None:
            raise NotFoundError(f"{self.kind} not found: {note_id}")
        return db_note

    @staticmethod
    def _pk(note_id: str) -> int:
        try:
            return int(note_id)
        except (TypeError, ValueError):
            raise NotFoundError(f"Invalid note id: {note_id}") from None

    @override
    def exists(self, note_id: str) -> bool:
        try:
            pk = self._pk(note_id)
        except NotFoundError:
            return False
        with self.session_factory() as session:
            stmt = select(SmartNote.id).where(SmartNote.id == pk)
            return session.execute(stmt).scalar_one_or_none() is not None

    @override
    def get_label(self, note_id: str) -> str | None:
        try:
            pk = self._pk(note_id)
        except NotFoundError:
            return None
        with self.session_factory() as session:
            stmt = select(SmartNote.note).where(SmartNote.id == pk)
            text: str | None = session.execute(stmt).scalar_one_or_none()
        if text is None:
            return None
        return text[: self.label_length]

    @override
    def get_processing_parameters(self, note_id: str) -> ProcessingParameters:
        with self.session_factory() as session:
            db_note = self._load(session, note_id)
            return ProcessingParameters(
                context_id=db_note.context_id,
                environment=db_note.ai_environment,
                direct=db_note.ai_direct,
            )

    @override
    def get_result(self, note_id: str) -> str | None:
        with self.session_factory() as session:
            return self._load(session, note_id).ai_result

    @override
    def write_result(self, note_id: str, result: str, edited_by: str | None = None) -> None:
        with self.session_factory() as session, session.begin():
            db_note = self._load(session, note_id)
            if db_note.ai_result is not None:
                self._add_history(session, note_id, db_note.ai_result, edited_by)
            db_note.ai_result = result
            db_note.updated_at = int(time.time() * 1000)

    @override
    def append_result_history(
        self, note_id: str, previous_result: str | None, edited_by: str | None
    ) -> None:
        with self.session_factory() as session, session.begin():
            self._add_history(session, note_id, previous_result, edited_by)

    def _add_history(
        self,
        session: Session,
        note_id: str,
        previous_result: str | None,
        edited_by: str | None,
    ) -> None:
        session.add(
            ResultHistory(
                note_kind=self.kind,
                note_id=str(note_id),
                previous_result=previous_result,
                edited_by=edited_by,
                created_at=int(time.time() * 1000),
            )
        )

    def history(self, note_id: str) -> list[ResultHistory]:
        """Return the note's result history, oldest first."""
        with self.session_factory() as session:
            stmt = (
                select(ResultHistory)
                .where(ResultHistory.note_kind == self.kind, ResultHistory.note_id == str(note_id))
                .order_by(ResultHistory.id)
            )
            return list(session.execute(stmt).scalars())
