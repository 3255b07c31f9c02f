"""
Pydantic schemas exchanged with callers of the queue.
Decoupled from the SQLAlchemy models in ``smartnote_queue.models``.
"""

from pydantic import BaseModel, ConfigDict, Field

from .status import ACTIVE_STATUSES, TERMINAL_STATUSES, QueueStatus


class QueueEntryRecord(BaseModel):
    """One unit of queued note-processing work."""

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(..., description="Opaque public identifier")
    note_id: str = Field(..., description="Target note identifier")
    note_kind: str = Field(..., description="Note type discriminator, e.g. OnDemandSmartNote")
    owner_id: str = Field(..., description="User who requested the work")
    status: QueueStatus = QueueStatus.QUEUED
    created_at: int = Field(..., description="Insertion time in milliseconds")
    updated_at: int = Field(..., description="Last status change in milliseconds")
    error_message: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class NoteRef(BaseModel):
    """Tagged reference to a note of any kind."""

    kind: str
    id: str
    label: str | None = None


class QueuePosition(BaseModel):
    """An owner's live place in line for one active entry."""

    note: NoteRef
    status: QueueStatus
    position: int = Field(..., ge=1)
    total: int = Field(..., ge=1)
    entry_id: str


class ProcessingParameters(BaseModel):
    """Note-kind specific parameters handed to the generation service."""

    context_id: str | None = Field(None, description="AI context to run the note against")
    environment: str | None = Field(None, description="AI environment identifier")
    direct: bool = Field(False, description="Skip intermediate prompting on the service side")
    extra: dict[str, str] = Field(default_factory=dict)


class DispatchJob(BaseModel):
    """Everything the dispatcher needs to process one entry."""

    model_config = ConfigDict(frozen=True)

    entry_id: str
    note_id: str
    note_kind: str
    owner_id: str
    note_text: str
