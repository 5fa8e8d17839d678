"""
Repository interfaces (ports) for the relay.

These interfaces define the contract the relay core needs from the
persistence collaborator without specifying implementation details.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from ...domain.entities.command import CommandStatus, DeviceCommand
from ...domain.entities.device import Device
from ...domain.entities.telemetry import SensorReading


class CommandRepository(ABC):
    """Durable per-device command queue."""

    @abstractmethod
    async def create(self, command: DeviceCommand) -> DeviceCommand:
        """
        Persist a new pending command.

        Args:
            command: Command to store

        Returns:
            Stored command with its insertion sequence populated
        """
        pass

    @abstractmethod
    async def get_by_id(self, command_id: UUID) -> Optional[DeviceCommand]:
        """Get a command by ID."""
        pass

    @abstractmethod
    async def list_pending(self, device_id: UUID) -> List[DeviceCommand]:
        """
        Get pending commands for a device, oldest first.

        Ordering is creation time, ties broken by insertion sequence.
        """
        pass

    @abstractmethod
    async def apply_outcome(
        self,
        command_id: UUID,
        outcome: CommandStatus,
        executed_at: datetime,
        device_id: Optional[UUID] = None,
    ) -> Optional[DeviceCommand]:
        """
        Transition a pending command to a terminal state.

        Must be atomic with respect to the pending check.

        Args:
            command_id: Command UUID
            outcome: Terminal status
            executed_at: Time of the transition
            device_id: When given, the command must belong to this device

        Returns:
            The updated command if this call applied the transition,
            None if the command is unknown, foreign or already terminal
        """
        pass

    @abstractmethod
    async def get_history(self, device_id: UUID, limit: int = 50) -> List[DeviceCommand]:
        """Get commands for a device, newest first."""
        pass

    @abstractmethod
    async def delete_for_device(self, device_id: UUID) -> int:
        """
        Delete every command of a device regardless of state.

        Returns:
            Number of commands deleted
        """
        pass


class DeviceRepository(ABC):
    """Device identity, ownership and persisted presence."""

    @abstractmethod
    async def get_by_device_id(self, device_id: str) -> Optional[Device]:
        """Resolve an opaque device identifier."""
        pass

    @abstractmethod
    async def list_for_owner(self, owner_id: UUID) -> List[Device]:
        """Get all devices owned by a user."""
        pass

    @abstractmethod
    async def update_presence(
        self,
        device_id: str,
        is_online: Optional[bool],
        last_seen: Optional[datetime],
    ) -> None:
        """
        Write presence through to storage.

        A None argument leaves the stored value unchanged.
        """
        pass

    @abstractmethod
    async def delete(self, id: UUID) -> bool:
        """Delete a device by internal ID."""
        pass

    @abstractmethod
    async def get_plant_id(self, device_id: UUID) -> Optional[UUID]:
        """Get the plant a device is attached to, if any."""
        pass

    @abstractmethod
    async def is_plant_owned_by(self, plant_id: UUID, owner_id: UUID) -> bool:
        """Check plant ownership."""
        pass


class ReadingRepository(ABC):
    """Durable sensor reading log."""

    @abstractmethod
    async def create(self, reading: SensorReading) -> SensorReading:
        """Append a reading and return it with its ID."""
        pass

    @abstractmethod
    async def get_latest_for_plant(self, plant_id: UUID) -> Optional[SensorReading]:
        """Get the most recent reading for a plant."""
        pass
