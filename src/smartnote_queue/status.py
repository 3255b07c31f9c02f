"""Queue entry status values and the legal transitions between them.

    Queued -> In-Progress -> Done
                          -> Failed

Done and Failed are terminal. Regeneration never reopens a terminal entry,
it creates a new one.
"""

from enum import Enum
from typing import TYPE_CHECKING

from .errors import StateViolation

if TYPE_CHECKING:
    from .schemas import QueueEntryRecord


class QueueStatus(str, Enum):
    """Lifecycle status of a queue entry."""

    QUEUED = "Queued"
    IN_PROGRESS = "In-Progress"
    DONE = "Done"
    FAILED = "Failed"


ACTIVE_STATUSES: frozenset[QueueStatus] = frozenset({QueueStatus.QUEUED, QueueStatus.IN_PROGRESS})
TERMINAL_STATUSES: frozenset[QueueStatus] = frozenset({QueueStatus.DONE, QueueStatus.FAILED})

_SUCCESSORS: dict[QueueStatus, frozenset[QueueStatus]] = {
    QueueStatus.QUEUED: frozenset({QueueStatus.IN_PROGRESS}),
    QueueStatus.IN_PROGRESS: frozenset({QueueStatus.DONE, QueueStatus.FAILED}),
    QueueStatus.DONE: frozenset(),
    QueueStatus.FAILED: frozenset(),
}


def can_transition(current: QueueStatus, new: QueueStatus) -> bool:
    """Return True if ``new`` is a legal successor of ``current``."""
    return new in _SUCCESSORS[QueueStatus(current)]


def ensure_transition(
    current: QueueStatus, new: QueueStatus, entry_id: str | None = None
) -> None:
    """Raise StateViolation unless ``current -> new`` is legal."""
    if not can_transition(current, new):
        raise StateViolation(entry_id, QueueStatus(current).value, QueueStatus(new).value)


def transition(entry: "QueueEntryRecord", new: QueueStatus) -> "QueueEntryRecord":
    """Return a copy of ``entry`` moved to ``new``.

    The input record is never modified. Persisted entries are moved with
    ``QueueEntryRepository.update_status``, which applies the same rule.

    Raises:
        StateViolation: If the transition is not legal
    """
    ensure_transition(entry.status, new, entry.entry_id)
    return entry.model_copy(update={"status": QueueStatus(new)})
