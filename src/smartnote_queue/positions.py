"""Live queue positions.

Position of an active entry = 1 + number of active entries that come before
it in insertion order (store id), across all owners, notes and note kinds.
Total = size of the active set.

Positions are computed from one SELECT of the active set, so every value is
consistent with a single snapshot: positions of a snapshot are exactly
1..total. Nothing is cached; each call reflects the store at that instant.
"""

from collections.abc import Sequence

from .note_store import NoteStoreRegistry
from .queue_store import QueueEntryRepository
from .schemas import NoteRef, QueueEntryRecord, QueuePosition


def rank(active: Sequence[QueueEntryRecord]) -> dict[str, tuple[int, int]]:
    """Map entry_id -> (position, total) for an active set in insertion order."""
    total = len(active)
    return {entry.entry_id: (index, total) for index, entry in enumerate(active, start=1)}


class PositionCalculator:
    def __init__(
        self,
        repository: QueueEntryRepository,
        registry: NoteStoreRegistry | None = None,
    ):
        self.repository: QueueEntryRepository = repository
        self.registry: NoteStoreRegistry | None = registry

    def snapshot(self) -> list[QueueEntryRecord]:
        return self.repository.list_active()

    def positions_for_owner(self, owner_id: str) -> list[QueuePosition]:
        """Return the owner's active entries with their live positions, first in line first."""
        active = self.snapshot()
        ranks = rank(active)
        owner_id = str(owner_id)

        positions: list[QueuePosition] = []
        for entry in active:
            if entry.owner_id != owner_id:
                continue
            position, total = ranks[entry.entry_id]
            positions.append(
                QueuePosition(
                    note=self._note_ref(entry),
                    status=entry.status,
                    position=position,
                    total=total,
                    entry_id=entry.entry_id,
                )
            )

        positions.sort(key=lambda item: item.position)
        return positions

    def _note_ref(self, entry: QueueEntryRecord) -> NoteRef:
        if self.registry is None:
            return NoteRef(kind=entry.note_kind, id=entry.note_id)
        return self.registry.note_ref(entry.note_kind, entry.note_id)
