"""MQTT fan-out for queue entry events.

Events are published to ``<topic>/<owner_id>`` so a client only subscribes
to its own user's entries; events without an owner go to ``<topic>``.
"""
import json
import logging
import time
from typing import Any, Optional, Protocol

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    def connect(self) -> bool: ...

    def disconnect(self) -> None: ...

    def publish_event(self, event_type: str, entry_id: str, data: dict[str, Any]) -> bool: ...


class MQTTBroadcaster:
    """Publishes queue status changes as JSON messages (QoS 1)."""

    def __init__(self, broker: str, port: int, topic: str):
        self.broker = broker
        self.port = port
        self.topic = topic.rstrip("/")
        self.client: Optional[mqtt.Client] = None
        self.connected = False

    def topic_for(self, owner_id: Optional[str]) -> str:
        if not owner_id:
            return self.topic
        return f"{self.topic}/{owner_id}"

    def connect(self) -> bool:
        try:
            self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
            self.client.on_connect = self._on_connect
            self.client.on_disconnect = self._on_disconnect
            self.client.connect(self.broker, self.port, keepalive=60)
            self.client.loop_start()
            self.connected = True
            return True
        except Exception as e:
            logger.warning(f"Failed to connect to MQTT broker {self.broker}:{self.port}: {e}")
            self.client = None
            return False

    def disconnect(self) -> None:
        if self.client:
            self.client.loop_stop()
            self.client.disconnect()
            self.client = None
        self.connected = False

    def publish_event(self, event_type: str, entry_id: str, data: dict[str, Any]) -> bool:
        if not self.connected or not self.client:
            return False

        message = {
            "entry_id": entry_id,
            "event_type": event_type,
            "timestamp": int(time.time() * 1000),
            **data,
        }
        try:
            info = self.client.publish(self.topic_for(data.get("owner_id")), json.dumps(message), qos=1)
        except Exception as e:
            logger.error(f"Error publishing {event_type} for entry {entry_id}: {e}")
            return False
        return info.rc == mqtt.MQTT_ERR_SUCCESS

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        self.connected = reason_code == 0
        if not self.connected:
            logger.warning(f"MQTT broker refused connection: {reason_code}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self.connected = False


class NoOpBroadcaster:
    """Used when BROADCAST_TYPE is not "mqtt"."""

    def connect(self) -> bool:
        return True

    def disconnect(self) -> None:
        pass

    def publish_event(self, event_type: str, entry_id: str, data: dict[str, Any]) -> bool:
        return True


_broadcaster: Optional[Broadcaster] = None
_broadcaster_key: Optional[tuple[str, str, int, str]] = None


def get_broadcaster(broadcast_type: str, broker: str, port: int, topic: str) -> Broadcaster:
    """Return the process-wide broadcaster, replacing it when the settings change."""
    global _broadcaster, _broadcaster_key

    key = (broadcast_type, broker, port, topic)
    if _broadcaster is not None and _broadcaster_key == key:
        return _broadcaster

    shutdown_broadcaster()

    broadcaster: Broadcaster
    if broadcast_type == "mqtt":
        broadcaster = MQTTBroadcaster(broker, port, topic)
    else:
        broadcaster = NoOpBroadcaster()
    broadcaster.connect()

    _broadcaster, _broadcaster_key = broadcaster, key
    return broadcaster


def shutdown_broadcaster() -> None:
    global _broadcaster, _broadcaster_key
    if _broadcaster is not None:
        _broadcaster.disconnect()
    _broadcaster = None
    _broadcaster_key = None
