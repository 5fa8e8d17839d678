"""
Repository for device commands.

Handles command queueing, outcome application and per-device purge.
"""
import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import DeviceCommandModel, DeviceModel
from ....application.interfaces.repositories import CommandRepository
from ....domain.entities.command import CommandStatus, DeviceCommand

logger = logging.getLogger(__name__)


class SQLAlchemyCommandRepository(CommandRepository):
    """
    Repository for device command operations.

    Commands are always read joined to their device so that entities carry
    the opaque device identifier.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _joined(self):
        return (
            select(DeviceCommandModel, DeviceModel.device_id)
            .join(DeviceModel, DeviceModel.id == DeviceCommandModel.device_id)
        )

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    async def get_by_id(self, command_id: UUID) -> Optional[DeviceCommand]:
        """
        Get a command by ID.

        Args:
            command_id: Command UUID.

        Returns:
            DeviceCommand if found, None otherwise.
        """
        query = (
            self._joined()
            .where(DeviceCommandModel.id == command_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(query)
        row = result.first()

        return row[0].to_domain(row[1]) if row else None

    async def create(self, command: DeviceCommand) -> DeviceCommand:
        """
        Create a new pending command.

        Args:
            command: DeviceCommand entity to create.

        Returns:
            The command with its insertion sequence populated.
        """
        if not command.id:
            command.id = uuid4()

        model = DeviceCommandModel(
            id=command.id,
            device_id=command.device_id,
            command_type=command.command_type,
            command_value=command.command_value,
            status=command.status.value,
            created_at=command.created_at,
            created_by=command.created_by,
        )

        self._session.add(model)
        await self._session.flush()

        command.sequence = model.sequence

        logger.debug(f"Created command {command.id} for device {command.device_ref}: {command.command_type}")

        return command

    # =========================================================================
    # Queue Operations
    # =========================================================================

    async def list_pending(self, device_id: UUID) -> List[DeviceCommand]:
        """
        Get pending commands for a device.

        Args:
            device_id: Device UUID.

        Returns:
            Pending commands ordered by creation time, then insertion sequence.
        """
        query = (
            self._joined()
            .where(
                DeviceCommandModel.device_id == device_id,
                DeviceCommandModel.status == CommandStatus.PENDING.value,
            )
            .order_by(
                DeviceCommandModel.created_at,
                DeviceCommandModel.sequence,
            )
        )

        result = await self._session.execute(query)
        return [model.to_domain(device_ref) for model, device_ref in result.all()]

    async def apply_outcome(
        self,
        command_id: UUID,
        outcome: CommandStatus,
        executed_at: datetime,
        device_id: Optional[UUID] = None,
    ) -> Optional[DeviceCommand]:
        """
        Apply a terminal outcome to a pending command.

        The pending check and the transition are one conditional UPDATE, so
        concurrent reports for the same command produce a single transition.

        Args:
            command_id: Command UUID.
            outcome: executed or failed.
            executed_at: Transition time.
            device_id: Optional owning device the command must belong to.

        Returns:
            The updated command, or None if nothing was transitioned.
        """
        stmt = (
            update(DeviceCommandModel)
            .where(
                DeviceCommandModel.id == command_id,
                DeviceCommandModel.status == CommandStatus.PENDING.value,
            )
            .values(status=outcome.value, executed_at=executed_at)
            .returning(DeviceCommandModel.id)
            .execution_options(synchronize_session=False)
        )
        if device_id is not None:
            stmt = stmt.where(DeviceCommandModel.device_id == device_id)

        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is None:
            return None

        return await self.get_by_id(command_id)

    async def get_history(self, device_id: UUID, limit: int = 50) -> List[DeviceCommand]:
        """
        Get commands for a device, newest first.

        Args:
            device_id: Device UUID.
            limit: Maximum commands to return.
        """
        query = (
            self._joined()
            .where(DeviceCommandModel.device_id == device_id)
            .order_by(
                desc(DeviceCommandModel.created_at),
                desc(DeviceCommandModel.sequence),
            )
            .limit(limit)
        )

        result = await self._session.execute(query)
        return [model.to_domain(device_ref) for model, device_ref in result.all()]

    async def delete_for_device(self, device_id: UUID) -> int:
        """
        Delete every command of a device.

        Args:
            device_id: Device UUID.

        Returns:
            Number of commands deleted.
        """
        stmt = delete(DeviceCommandModel).where(
            DeviceCommandModel.device_id == device_id
        )
        result = await self._session.execute(stmt)

        return result.rowcount or 0
