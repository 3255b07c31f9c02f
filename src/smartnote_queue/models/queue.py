"""Queue entry model for note-processing work."""

from typing import override

from sqlalchemy import BigInteger, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class QueueEntry(Base):
    """One submitted unit of note-processing work and its lifecycle status.

    Entries are ordered by the autoincrement id, i.e. insertion order.
    created_at is informational and may step backwards with the wall clock.

    Terminal entries (Done/Failed) are kept for the audit trail; the newest
    entry per (note_id, note_kind) is the authoritative one.
    """

    __tablename__ = "queue_entries"  # pyright: ignore[reportUnannotatedClassAttribute]
    __table_args__ = (Index("ix_queue_entries_note", "note_id", "note_kind"),)  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entry_id: Mapped[str] = mapped_column(String, unique=True, nullable=False, index=True)

    note_id: Mapped[str] = mapped_column(String, nullable=False)
    note_kind: Mapped[str] = mapped_column(String, nullable=False)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)

    status: Mapped[str] = mapped_column(String, nullable=False, index=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    @override
    def __repr__(self) -> str:
        return (
            f"<QueueEntry(entry_id={self.entry_id}, note={self.note_kind}:{self.note_id}, "
            f"status={self.status})>"
        )
