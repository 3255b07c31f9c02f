"""Conversion between the QueueEntry table and QueueEntryRecord."""

from .models import QueueEntry
from .schemas import QueueEntryRecord
from .status import QueueStatus


def db_entry_to_record(db_entry: QueueEntry) -> QueueEntryRecord:
    """Convert SQLAlchemy QueueEntry to Pydantic QueueEntryRecord.

    Returns:
        Pydantic QueueEntryRecord with all public entry fields
    """
    return QueueEntryRecord(
        entry_id=db_entry.entry_id,
        note_id=db_entry.note_id,
        note_kind=db_entry.note_kind,
        owner_id=db_entry.owner_id,
        status=QueueStatus(db_entry.status),
        created_at=db_entry.created_at,
        updated_at=db_entry.updated_at,
        error_message=db_entry.error_message,
    )
