"""SQLAlchemy-backed store of record for queue entries.

All writes are single statements against one row (or one note's rows):

- Entries are created with status Queued and never resurrected
- Status changes use a conditional UPDATE (optimistic locking) so that the
  legality check and the write cannot be separated by another writer
- Status and updated_at are always written together
"""

import logging
import time
from collections.abc import Iterable
from uuid import uuid4

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.orm import Session, sessionmaker

from .entry_translator import db_entry_to_record
from .errors import NotFoundError, StateViolation
from .models import QueueEntry
from .schemas import QueueEntryRecord
from .status import ACTIVE_STATUSES, TERMINAL_STATUSES, QueueStatus, ensure_transition

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]
_TERMINAL_VALUES = [status.value for status in TERMINAL_STATUSES]


def _now_ms() -> int:
    return int(time.time() * 1000)


class QueueEntryRepository:
    """Repository for QueueEntry rows.

    Example:
        session_factory = create_session_factory(engine)
        repository = QueueEntryRepository(session_factory)

        entry = repository.create("42", "OnDemandSmartNote", owner_id="7")
        repository.update_status(entry.entry_id, QueueStatus.IN_PROGRESS)
        latest = repository.find_latest_for("42", "OnDemandSmartNote")
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        """Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy session factory (sessionmaker)
        """
        self.session_factory: sessionmaker[Session] = session_factory

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, note_id: str, note_kind: str, owner_id: str) -> QueueEntryRecord:
        """Insert a new Queued entry.

        Args:
            note_id: Target note identifier
            note_kind: Note type discriminator
            owner_id: Requesting user

        Returns:
            The persisted entry
        """
        now_ms = _now_ms()
        with self.session_factory() as session:
            db_entry = QueueEntry(
                entry_id=uuid4().hex,
                note_id=str(note_id),
                note_kind=note_kind,
                owner_id=str(owner_id),
                status=QueueStatus.QUEUED.value,
                created_at=now_ms,
                updated_at=now_ms,
            )
            session.add(db_entry)
            session.flush()
            record = db_entry_to_record(db_entry)
            session.commit()

        logger.debug(f"Created queue entry {record.entry_id} for {note_kind}:{note_id}")
        return record

    def update_status(
        self,
        entry_id: str,
        new_status: QueueStatus,
        error_message: str | None = None,
    ) -> QueueEntryRecord:
        """Move an entry to ``new_status``.

        The UPDATE only matches while the row still holds the status that was
        validated, so two concurrent callers cannot both win the same
        transition. updated_at is bumped past its previous value even when
        the clock has not advanced.

        Args:
            entry_id: Public entry identifier
            new_status: Requested status
            error_message: Failure reason stored alongside the status

        Returns:
            The updated entry

        Raises:
            NotFoundError: If the entry does not exist
            StateViolation: If the transition is illegal or was lost to a concurrent writer
        """
        new_status = QueueStatus(new_status)

        with self.session_factory() as session:
            stmt = select(QueueEntry.status).where(QueueEntry.entry_id == entry_id)
            current: str | None = session.execute(stmt).scalar_one_or_none()
            if current is None:
                raise NotFoundError(f"Queue entry not found: {entry_id}")

            # Raises without touching the row
            ensure_transition(QueueStatus(current), new_status, entry_id)

            now_ms = _now_ms()
            stmt = (
                update(QueueEntry)
                .where(
                    QueueEntry.entry_id == entry_id,
                    QueueEntry.status == current,  # Optimistic lock
                )
                .values(
                    status=new_status.value,
                    error_message=error_message,
                    updated_at=case(
                        (QueueEntry.updated_at >= now_ms, QueueEntry.updated_at + 1),
                        else_=now_ms,
                    ),
                )
                .returning(QueueEntry)
            )
            db_entry: QueueEntry | None = session.execute(stmt).scalar_one_or_none()
            record = db_entry_to_record(db_entry) if db_entry is not None else None
            session.commit()

        if record is None:
            # Another writer moved the entry between the check and the update
            raise StateViolation(entry_id, current, new_status.value)

        return record

    def delete(self, entry_id: str) -> None:
        """Delete a single entry unless it is In-Progress.

        Raises:
            NotFoundError: If the entry does not exist
            StateViolation: If the entry is In-Progress
        """
        with self.session_factory() as session:
            stmt = delete(QueueEntry).where(
                QueueEntry.entry_id == entry_id,
                QueueEntry.status != QueueStatus.IN_PROGRESS.value,
            )
            deleted = session.execute(stmt).rowcount
            session.commit()

            if deleted:
                return

            status: str | None = session.execute(
                select(QueueEntry.status).where(QueueEntry.entry_id == entry_id)
            ).scalar_one_or_none()

        if status is None:
            raise NotFoundError(f"Queue entry not found: {entry_id}")
        raise StateViolation(entry_id, status, "deleted")

    def delete_all_for(self, note_id: str, note_kind: str) -> int:
        """Delete every entry of a note (cascade when the note is deleted).

        Refused while one of the note's entries is In-Progress. The DELETE
        itself also never matches In-Progress rows.

        Returns:
            Number of deleted entries

        Raises:
            StateViolation: If the note has an In-Progress entry
        """
        with self.session_factory() as session, session.begin():
            stmt = select(func.count(QueueEntry.id)).where(
                QueueEntry.note_id == str(note_id),
                QueueEntry.note_kind == note_kind,
                QueueEntry.status == QueueStatus.IN_PROGRESS.value,
            )
            if session.execute(stmt).scalar_one():
                raise StateViolation(None, QueueStatus.IN_PROGRESS.value, "deleted")

            result = session.execute(
                delete(QueueEntry).where(
                    QueueEntry.note_id == str(note_id),
                    QueueEntry.note_kind == note_kind,
                    QueueEntry.status != QueueStatus.IN_PROGRESS.value,
                )
            )
            deleted: int = result.rowcount

        logger.info(f"Deleted {deleted} queue entries for {note_kind}:{note_id}")
        return deleted

    def purge_terminal_before(self, cutoff_ms: int) -> int:
        """Delete Done/Failed entries created before ``cutoff_ms``.

        Returns:
            Number of deleted entries
        """
        with self.session_factory() as session:
            stmt = delete(QueueEntry).where(
                QueueEntry.status.in_(_TERMINAL_VALUES),
                QueueEntry.created_at < cutoff_ms,
            )
            deleted: int = session.execute(stmt).rowcount
            session.commit()

        return deleted

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, entry_id: str) -> QueueEntryRecord | None:
        with self.session_factory() as session:
            stmt = select(QueueEntry).where(QueueEntry.entry_id == entry_id)
            db_entry = session.execute(stmt).scalar_one_or_none()

            if db_entry:
                return db_entry_to_record(db_entry)
            return None

    def find_latest_for(self, note_id: str, note_kind: str) -> QueueEntryRecord | None:
        """Return the authoritative (newest) entry of a note, if any."""
        with self.session_factory() as session:
            stmt = (
                select(QueueEntry)
                .where(QueueEntry.note_id == str(note_id), QueueEntry.note_kind == note_kind)
                .order_by(QueueEntry.id.desc())
                .limit(1)
            )
            db_entry = session.execute(stmt).scalar_one_or_none()

            if db_entry:
                return db_entry_to_record(db_entry)
            return None

    def latest_for_notes(
        self, note_ids: Iterable[str], note_kind: str
    ) -> dict[str, QueueEntryRecord]:
        """Return the newest entry for each of ``note_ids`` that has one."""
        ids = [str(note_id) for note_id in note_ids]
        if not ids:
            return {}

        latest: dict[str, QueueEntryRecord] = {}
        for record in self.list_for_notes(ids, note_kind):
            # Ascending order, later rows win
            latest[record.note_id] = record
        return latest

    def list_for_notes(
        self,
        note_ids: Iterable[str],
        note_kind: str,
        exclude_in_progress: bool = False,
    ) -> list[QueueEntryRecord]:
        """Return all entries of the given notes in insertion order."""
        ids = [str(note_id) for note_id in note_ids]
        if not ids:
            return []

        with self.session_factory() as session:
            stmt = select(QueueEntry).where(
                QueueEntry.note_id.in_(ids),
                QueueEntry.note_kind == note_kind,
            )
            if exclude_in_progress:
                stmt = stmt.where(QueueEntry.status != QueueStatus.IN_PROGRESS.value)
            stmt = stmt.order_by(QueueEntry.id)

            return [db_entry_to_record(row) for row in session.execute(stmt).scalars()]

    def list_active(self) -> list[QueueEntryRecord]:
        """Return the whole active set (Queued or In-Progress) in insertion order.

        A single SELECT, so the result is one consistent snapshot.
        """
        with self.session_factory() as session:
            stmt = (
                select(QueueEntry)
                .where(QueueEntry.status.in_(_ACTIVE_VALUES))
                .order_by(QueueEntry.id)
            )
            return [db_entry_to_record(row) for row in session.execute(stmt).scalars()]

    def list_for_owner(self, owner_id: str, active_only: bool = True) -> list[QueueEntryRecord]:
        with self.session_factory() as session:
            stmt = select(QueueEntry).where(QueueEntry.owner_id == str(owner_id))
            if active_only:
                stmt = stmt.where(QueueEntry.status.in_(_ACTIVE_VALUES))
            stmt = stmt.order_by(QueueEntry.id)

            return [db_entry_to_record(row) for row in session.execute(stmt).scalars()]

    def has_active_entry(
        self, note_id: str, note_kind: str, owner_id: str | None = None
    ) -> bool:
        """Return True if the note (optionally for one owner) has a Queued/In-Progress entry."""
        with self.session_factory() as session:
            stmt = select(func.count(QueueEntry.id)).where(
                QueueEntry.note_id == str(note_id),
                QueueEntry.note_kind == note_kind,
                QueueEntry.status.in_(_ACTIVE_VALUES),
            )
            if owner_id is not None:
                stmt = stmt.where(QueueEntry.owner_id == str(owner_id))

            return session.execute(stmt).scalar_one() > 0
