"""
Telemetry Service.

Ingests sensor readings reported over either channel into the reading log
and fans them out to the device's observers.
"""
import logging
from typing import Any, Callable, Dict, Optional
from uuid import UUID

from ..interfaces.unit_of_work import UnitOfWork
from ...domain.entities.telemetry import SensorReading
from ...domain.exceptions import AuthorizationException, EntityNotFoundException
from .event_fanout import EventFanout
from .presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)


class TelemetryService:
    """Application service for sensor readings."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        presence: PresenceTracker,
        fanout: EventFanout,
    ):
        self._uow_factory = uow_factory
        self._presence = presence
        self._fanout = fanout

    async def record(self, device_id: str, report: Dict[str, Any]) -> SensorReading:
        """
        Store a reading and notify observers.

        The reading is attributed to the plant the device is attached to,
        if any.

        Args:
            device_id: Reporting device.
            report: Reading values keyed by wire name (soilMoisture etc).

        Returns:
            The stored reading.

        Raises:
            EntityNotFoundException: Unknown device.
        """
        async with self._uow_factory() as uow:
            device = await uow.devices.get_by_device_id(device_id)
            if device is None:
                raise EntityNotFoundException("Device", device_id)

            plant_id = await uow.devices.get_plant_id(device.id)
            reading = SensorReading.from_report(device.id, plant_id, report)
            reading = await uow.readings.create(reading)
            await uow.commit()

        logger.debug(f"Recorded reading {reading.id} from {device_id}")

        await self._presence.touch(device_id)
        await self._fanout.telemetry_recorded(device_id, plant_id, reading.to_dict())
        return reading

    async def latest_for_plant(self, caller_id: Optional[UUID], plant_id: UUID) -> Optional[SensorReading]:
        """
        Get the most recent reading of a plant owned by the caller.

        Raises:
            AuthorizationException: Plant unknown or owned by someone else.
        """
        async with self._uow_factory() as uow:
            if caller_id is None or not await uow.devices.is_plant_owned_by(plant_id, caller_id):
                raise AuthorizationException(
                    message="Not authorized to access this plant",
                    resource=f"plant:{plant_id}",
                )
            return await uow.readings.get_latest_for_plant(plant_id)
