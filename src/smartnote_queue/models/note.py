"""Note tables backing the SQLAlchemy note store."""

from typing import override

from sqlalchemy import BigInteger, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class SmartNote(Base):
    """Free-text clinical note submitted for AI-assisted processing."""

    __tablename__ = "smart_notes"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    note: Mapped[str] = mapped_column(Text, nullable=False)

    # Written by the dispatcher
    ai_result: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Processing parameters
    context_id: Mapped[str | None] = mapped_column(String, nullable=True)
    ai_environment: Mapped[str | None] = mapped_column(String, nullable=True)
    # Ask the generation service to skip its intermediate prompting
    ai_direct: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    @override
    def __repr__(self) -> str:
        return f"<SmartNote(id={self.id}, owner_id={self.owner_id})>"


class ResultHistory(Base):
    """Audit row: the result a note held before it was overwritten, and by whom."""

    __tablename__ = "result_history"  # pyright: ignore[reportUnannotatedClassAttribute]

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    note_kind: Mapped[str] = mapped_column(String, nullable=False)
    note_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    previous_result: Mapped[str | None] = mapped_column(Text, nullable=True)
    edited_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)

    @override
    def __repr__(self) -> str:
        return f"<ResultHistory(note={self.note_kind}:{self.note_id}, edited_by={self.edited_by})>"
