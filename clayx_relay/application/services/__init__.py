"""
Application services for the relay.
"""
from .command_store import CommandStore, parse_outcome
from .container import RelayServices, build_services
from .delivery_router import DeliveryRouter, PushChannel
from .device_service import DeviceService
from .event_fanout import EventFanout, EventJournal, EventSubscriber
from .keyed_lock import KeyedLock
from .presence_tracker import PresenceTracker, PresenceWriter
from .telemetry_service import TelemetryService

__all__ = [
    "CommandStore",
    "parse_outcome",
    "RelayServices",
    "build_services",
    "DeliveryRouter",
    "PushChannel",
    "DeviceService",
    "EventFanout",
    "EventJournal",
    "EventSubscriber",
    "KeyedLock",
    "PresenceTracker",
    "PresenceWriter",
    "TelemetryService",
]
