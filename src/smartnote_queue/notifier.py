"""Notification fan-out for queue status changes."""

import logging
from typing import Any

from .config import Config
from .mqtt import Broadcaster, get_broadcaster
from .schemas import QueueEntryRecord

logger = logging.getLogger(__name__)


class QueueNotifier:
    """Publishes queue events so connected clients can refresh.

    Signalling is fire-and-forget: a broadcaster failure is logged and
    never reaches the caller.
    """

    def __init__(self, broadcaster: Broadcaster | None = None):
        if broadcaster is None:
            broadcaster = get_broadcaster(
                broadcast_type=Config.BROADCAST_TYPE,
                broker=Config.MQTT_BROKER,
                port=Config.MQTT_PORT,
                topic=Config.MQTT_TOPIC,
            )
        self.broadcaster: Broadcaster = broadcaster

    def signal(self, event_kind: str, payload: dict[str, Any]) -> None:
        entry_id = str(payload.get("entry_id", ""))
        data = {key: value for key, value in payload.items() if key != "entry_id"}
        try:
            published = self.broadcaster.publish_event(event_kind, entry_id, data)
        except Exception as e:
            logger.warning(f"Failed to signal {event_kind} for entry {entry_id}: {e}")
            return
        if not published:
            logger.debug(f"Event {event_kind} for entry {entry_id} was not published")

    def entry_changed(self, entry: QueueEntryRecord, **extra: Any) -> None:
        """Signal the entry's current status."""
        self.signal(
            entry.status.value,
            {
                "entry_id": entry.entry_id,
                "note_id": entry.note_id,
                "note_kind": entry.note_kind,
                "owner_id": entry.owner_id,
                **extra,
            },
        )
