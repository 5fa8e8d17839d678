"""
Device Service.

Owner-facing device reads with live presence, and the device deletion
hook that keeps the command queue and presence state consistent.
"""
import logging
from typing import Callable, List, Optional
from uuid import UUID

from ..interfaces.unit_of_work import UnitOfWork
from ...domain.entities.device import Device
from ...domain.exceptions import AuthorizationException, EntityNotFoundException
from .command_store import CommandStore
from .event_fanout import EventFanout
from .presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)


class DeviceService:
    """Application service for device lookup and deletion."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        commands: CommandStore,
        presence: PresenceTracker,
        fanout: EventFanout,
    ):
        self._uow_factory = uow_factory
        self._commands = commands
        self._presence = presence
        self._fanout = fanout

    async def get_device(self, device_id: str) -> Device:
        """
        Resolve a registered device.

        Raises:
            EntityNotFoundException: Unknown device.
        """
        async with self._uow_factory() as uow:
            device = await uow.devices.get_by_device_id(device_id)
        if device is None:
            raise EntityNotFoundException("Device", device_id)
        return device

    async def find_device(self, device_id: str) -> Optional[Device]:
        async with self._uow_factory() as uow:
            return await uow.devices.get_by_device_id(device_id)

    async def list_devices(self, owner_id: UUID) -> List[Device]:
        """
        Get an owner's devices with presence taken from the live tracker.

        Args:
            owner_id: Owning user.

        Returns:
            Devices; online flag and last seen reflect in-memory presence
            when the tracker knows the device.
        """
        async with self._uow_factory() as uow:
            devices = await uow.devices.list_for_owner(owner_id)

        for device in devices:
            record = self._presence.snapshot(device.device_id)
            if record is None:
                continue
            device.is_online = record.online
            if record.last_seen is not None:
                device.last_seen = record.last_seen
        return devices

    async def owned_device_ids(self, owner_id: UUID) -> List[str]:
        """Opaque identifiers of every device an owner may observe."""
        async with self._uow_factory() as uow:
            devices = await uow.devices.list_for_owner(owner_id)
        return [device.device_id for device in devices]

    async def delete_device(self, caller_id: Optional[UUID], device_id: str) -> int:
        """
        Delete an owned device, purging its commands and presence.

        Args:
            caller_id: Authenticated user.
            device_id: Opaque device identifier.

        Returns:
            Number of commands purged.

        Raises:
            EntityNotFoundException: Unknown device.
            AuthorizationException: Device owned by someone else.
        """
        async with self._uow_factory() as uow:
            device = await uow.devices.get_by_device_id(device_id)
            if device is None:
                raise EntityNotFoundException("Device", device_id)
            if not device.is_owned_by(caller_id):
                raise AuthorizationException(resource=f"device:{device_id}")

            purged = await self._commands.purge_for_device(device.id, uow=uow)
            await uow.devices.delete(device.id)
            await uow.commit()

        record = self._presence.forget(device_id)
        self._fanout.drop_room(device_id)
        if record is not None and record.channel is not None:
            await record.channel.close()

        logger.info(f"Deleted device {device_id} ({purged} commands purged)")
        return purged
