"""
Wiring of the relay services.

The relay core is process-wide shared state, so the services are built
once at startup and shared by every request and socket connection.
"""
from dataclasses import dataclass
from typing import Callable, Optional

from ..interfaces.unit_of_work import UnitOfWork
from ...config import RelaySettings
from .command_store import CommandStore
from .delivery_router import DeliveryRouter
from .device_service import DeviceService
from .event_fanout import EventFanout, EventJournal
from .presence_tracker import PresenceTracker, PresenceWriter
from .telemetry_service import TelemetryService


@dataclass
class RelayServices:
    """Singleton relay services."""
    settings: RelaySettings
    fanout: EventFanout
    presence: PresenceTracker
    router: DeliveryRouter
    commands: CommandStore
    devices: DeviceService
    telemetry: TelemetryService


def build_services(
    uow_factory: Callable[[], UnitOfWork],
    settings: Optional[RelaySettings] = None,
    journal: Optional[EventJournal] = None,
    write_through: bool = True,
) -> RelayServices:
    """
    Build the relay services around a unit of work factory.

    Args:
        uow_factory: Returns a fresh unit of work per operation.
        settings: Relay settings.
        journal: Optional event journal.
        write_through: Persist presence changes to the device table.
    """
    settings = settings or RelaySettings()
    fanout = EventFanout(journal=journal)
    writer = PresenceWriter(uow_factory) if write_through else None
    presence = PresenceTracker(fanout, writer=writer)
    router = DeliveryRouter(presence)
    commands = CommandStore(uow_factory, router, fanout, settings=settings)

    return RelayServices(
        settings=settings,
        fanout=fanout,
        presence=presence,
        router=router,
        commands=commands,
        devices=DeviceService(uow_factory, commands, presence, fanout),
        telemetry=TelemetryService(uow_factory, presence, fanout),
    )
