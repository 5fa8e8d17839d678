"""
Domain entities for the relay.
"""
from .base import Entity, utc_now
from .device import Device, PresenceRecord
from .command import (
    CommandStatus,
    CommandType,
    DeviceCommand,
    normalize_command,
)
from .event import EventType, RelayEvent
from .telemetry import SensorReading

__all__ = [
    # Base
    "Entity",
    "utc_now",
    # Device
    "Device",
    "PresenceRecord",
    # Command
    "CommandStatus",
    "CommandType",
    "DeviceCommand",
    "normalize_command",
    # Event
    "EventType",
    "RelayEvent",
    # Telemetry
    "SensorReading",
]
