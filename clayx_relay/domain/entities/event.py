"""
Relay events broadcast to observers of a device.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .base import utc_now


class EventType(str, Enum):
    """Kinds of events fanned out to subscribers."""
    PRESENCE_CHANGED = "presence_changed"
    TELEMETRY_RECORDED = "telemetry_recorded"
    COMMAND_STATUS_CHANGED = "command_status_changed"


@dataclass
class RelayEvent:
    """
    An event addressed to every subscriber of a device.
    """
    event_type: EventType
    device_id: str
    data: Dict[str, Any]
    time: datetime = field(default_factory=utc_now)

    def to_message(self) -> Dict[str, Any]:
        """Wire frame for socket subscribers."""
        return {"event": self.event_type.value, "data": self.data}

    @classmethod
    def presence_changed(
        cls,
        device_id: str,
        online: bool,
        last_seen: Optional[datetime],
    ) -> "RelayEvent":
        """Factory method for presence events."""
        return cls(
            event_type=EventType.PRESENCE_CHANGED,
            device_id=device_id,
            data={
                "deviceId": device_id,
                "online": online,
                "lastSeen": last_seen.isoformat() if last_seen else None,
            },
        )

    @classmethod
    def telemetry_recorded(
        cls,
        device_id: str,
        plant_id: Optional[Any],
        reading: Dict[str, Any],
    ) -> "RelayEvent":
        """Factory method for telemetry events."""
        return cls(
            event_type=EventType.TELEMETRY_RECORDED,
            device_id=device_id,
            data={
                "deviceId": device_id,
                "plantId": str(plant_id) if plant_id is not None else None,
                "reading": reading,
            },
        )

    @classmethod
    def command_status_changed(
        cls,
        device_id: str,
        command_id: Any,
        status: str,
    ) -> "RelayEvent":
        """Factory method for command outcome events."""
        return cls(
            event_type=EventType.COMMAND_STATUS_CHANGED,
            device_id=device_id,
            data={
                "commandId": str(command_id),
                "status": status,
                "deviceId": device_id,
            },
        )
