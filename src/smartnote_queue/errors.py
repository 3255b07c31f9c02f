"""Exceptions raised by the note-processing queue."""


class QueueError(Exception):
    """Base class for queue errors."""


class StateViolation(QueueError):
    """Illegal status transition, or a transition lost to a concurrent writer."""

    def __init__(self, entry_id: str | None, current: str | None, requested: str):
        self.entry_id: str | None = entry_id
        self.current: str | None = current
        self.requested: str = requested
        super().__init__(
            f"Illegal transition for entry {entry_id}: {current} -> {requested}"
        )


class ExternalServiceError(QueueError):
    """Translation or generation call failed (network, timeout, bad response)."""

    def __init__(self, service: str, message: str):
        self.service: str = service
        super().__init__(f"{service}: {message}")


class NotFoundError(QueueError):
    """Referenced entry, note or note kind does not exist."""
