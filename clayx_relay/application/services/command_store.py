"""
Command Store.

Durable per-device command queue with the pending -> executed | failed
state machine. Both delivery channels read from this one store, keyed by
command identity, so push and poll are only views over the same state.
"""
import logging
from typing import Any, Callable, List, Optional, Union
from uuid import UUID

from ..interfaces.unit_of_work import UnitOfWork
from ...config import RelaySettings
from ...domain.entities.base import utc_now
from ...domain.entities.command import CommandStatus, DeviceCommand, normalize_command
from ...domain.entities.device import Device
from ...domain.exceptions import (
    AuthorizationException,
    EntityNotFoundException,
    InvalidCommandException,
)
from .delivery_router import DeliveryRouter
from .event_fanout import EventFanout

logger = logging.getLogger(__name__)


def parse_outcome(outcome: Union[str, CommandStatus]) -> CommandStatus:
    """
    Parse a reported outcome.

    Raises:
        InvalidCommandException: If the value is not executed or failed.
    """
    try:
        status = CommandStatus(str(getattr(outcome, "value", outcome)).strip().lower())
    except ValueError:
        status = None
    if status is None or not status.is_terminal:
        raise InvalidCommandException(
            f"Outcome must be '{CommandStatus.EXECUTED.value}' or '{CommandStatus.FAILED.value}'",
            field="status",
        )
    return status


def _parse_command_id(command_id: Any) -> Optional[UUID]:
    if isinstance(command_id, UUID):
        return command_id
    try:
        return UUID(str(command_id))
    except (TypeError, ValueError):
        return None


class CommandStore:
    """
    Application service for device commands.

    Coordinates the command lifecycle from enqueue to terminal outcome.
    Each operation runs in its own unit of work.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        router: DeliveryRouter,
        fanout: EventFanout,
        settings: Optional[RelaySettings] = None,
    ):
        self._uow_factory = uow_factory
        self._router = router
        self._fanout = fanout
        self._settings = settings or RelaySettings()

    # =========================================================================
    # Enqueue
    # =========================================================================

    async def enqueue(
        self,
        caller_id: Optional[UUID],
        device_id: str,
        command_type: str,
        command_value: Any,
    ) -> DeviceCommand:
        """
        Queue a command for a device owned by the caller.

        The command is committed before the Delivery Router sees it, so a
        device that receives the push can always find the command by id.

        Args:
            caller_id: Authenticated user.
            device_id: Opaque device identifier.
            command_type: pump, light or interval.
            command_value: Command value.

        Returns:
            The stored pending command.

        Raises:
            InvalidCommandException: Malformed type or value.
            EntityNotFoundException: Unknown device.
            AuthorizationException: Device owned by someone else.
        """
        ctype, value = normalize_command(
            command_type,
            command_value,
            min_interval_seconds=self._settings.min_interval_seconds,
            max_interval_seconds=self._settings.max_interval_seconds,
        )

        async with self._uow_factory() as uow:
            device = await self._resolve_owned(uow, caller_id, device_id)
            command = DeviceCommand(
                device_id=device.id,
                device_ref=device.device_id,
                command_type=ctype.value,
                command_value=value,
                created_by=caller_id,
            )
            command = await uow.commands.create(command)
            await uow.commit()

        logger.info(f"Queued command {command.id}: {command.command_type}={command.command_value} for device {device_id}")

        await self._router.dispatch(command)
        return command

    # =========================================================================
    # Retrieval
    # =========================================================================

    async def list_pending(self, device_id: str) -> List[DeviceCommand]:
        """
        Get pending commands for a device, oldest first.

        Listing never changes command state.

        Raises:
            EntityNotFoundException: Unknown device.
        """
        async with self._uow_factory() as uow:
            device = await self._resolve(uow, device_id)
            return await uow.commands.list_pending(device.id)

    async def command_history(
        self,
        caller_id: Optional[UUID],
        device_id: str,
        limit: Optional[int] = None,
    ) -> List[DeviceCommand]:
        """
        Get the most recent commands of an owned device, newest first.

        Args:
            caller_id: Authenticated user.
            device_id: Opaque device identifier.
            limit: Maximum commands to return (clamped to the configured maximum).
        """
        if limit is None:
            limit = self._settings.history_default_limit
        limit = max(1, min(limit, self._settings.history_max_limit))

        async with self._uow_factory() as uow:
            device = await self._resolve_owned(uow, caller_id, device_id)
            return await uow.commands.get_history(device.id, limit=limit)

    # =========================================================================
    # Outcome
    # =========================================================================

    async def report_outcome(
        self,
        command_id: Any,
        outcome: Union[str, CommandStatus],
        device_id: Optional[str] = None,
    ) -> Optional[DeviceCommand]:
        """
        Apply an executed/failed outcome to a command.

        Idempotent: the transition and its fan-out event happen on the first
        report only. Reports for unknown, foreign or already terminal
        commands are logged and otherwise ignored.

        Args:
            command_id: Command identifier as reported.
            outcome: executed or failed.
            device_id: Reporting device, when the channel knows it.

        Returns:
            The updated command if this report applied the transition, else None.

        Raises:
            InvalidCommandException: If the outcome is not executed or failed.
        """
        status = parse_outcome(outcome)

        command_uuid = _parse_command_id(command_id)
        if command_uuid is None:
            logger.warning(f"Ignoring outcome for malformed command id: {command_id!r}")
            return None

        async with self._uow_factory() as uow:
            device_uuid = None
            if device_id is not None:
                device = await uow.devices.get_by_device_id(device_id)
                if device is None:
                    logger.warning(f"Ignoring outcome for {command_uuid} from unknown device {device_id}")
                    return None
                device_uuid = device.id

            command = await uow.commands.apply_outcome(
                command_uuid,
                status,
                utc_now(),
                device_id=device_uuid,
            )
            if command is None:
                logger.info(f"Outcome {status.value} for command {command_uuid} ignored (unknown or already terminal)")
                return None

            await uow.commit()

        logger.info(f"Command {command.id} on {command.device_ref} -> {command.status.value}")

        await self._fanout.command_status_changed(command.device_ref, command.id, command.status.value)
        return command

    # =========================================================================
    # Device deletion
    # =========================================================================

    async def purge_for_device(self, device_uuid: UUID, uow: Optional[UnitOfWork] = None) -> int:
        """
        Remove every command of a device, in any state.

        Args:
            device_uuid: Internal device key.
            uow: Unit of work of the calling deletion. When given, the caller
                commits; otherwise the purge commits on its own.

        Returns:
            Number of commands removed.
        """
        if uow is not None:
            removed = await uow.commands.delete_for_device(device_uuid)
        else:
            async with self._uow_factory() as own:
                removed = await own.commands.delete_for_device(device_uuid)
                await own.commit()

        logger.info(f"Purged {removed} commands of device {device_uuid}")
        return removed

    # =========================================================================
    # Helper Methods
    # =========================================================================

    async def _resolve(self, uow: UnitOfWork, device_id: str) -> Device:
        device = await uow.devices.get_by_device_id(device_id)
        if device is None:
            raise EntityNotFoundException("Device", device_id)
        return device

    async def _resolve_owned(self, uow: UnitOfWork, caller_id: Optional[UUID], device_id: str) -> Device:
        device = await self._resolve(uow, device_id)
        if not device.is_owned_by(caller_id):
            raise AuthorizationException(resource=f"device:{device_id}")
        return device
