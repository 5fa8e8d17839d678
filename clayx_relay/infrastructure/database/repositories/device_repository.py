"""
Repository for devices and their plant attachment.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import DeviceModel, PlantModel
from ....application.interfaces.repositories import DeviceRepository
from ....domain.entities.device import Device


class SQLAlchemyDeviceRepository(DeviceRepository):
    """Device identity, ownership and persisted presence."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_device_id(self, device_id: str) -> Optional[Device]:
        """
        Resolve an opaque device identifier.

        Args:
            device_id: Identifier presented by the controller.

        Returns:
            Device if registered, None otherwise.
        """
        query = select(DeviceModel).where(DeviceModel.device_id == device_id)
        result = await self._session.execute(query)
        model = result.scalar_one_or_none()

        return model.to_domain() if model else None

    async def list_for_owner(self, owner_id: UUID) -> List[Device]:
        query = (
            select(DeviceModel)
            .where(DeviceModel.owner_id == owner_id)
            .order_by(DeviceModel.created_at)
        )
        result = await self._session.execute(query)
        return [model.to_domain() for model in result.scalars().all()]

    async def update_presence(
        self,
        device_id: str,
        is_online: Optional[bool],
        last_seen: Optional[datetime],
    ) -> None:
        values: Dict[str, Any] = {}
        if is_online is not None:
            values["is_online"] = is_online
        if last_seen is not None:
            values["last_seen"] = last_seen
        if not values:
            return

        stmt = (
            update(DeviceModel)
            .where(DeviceModel.device_id == device_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(stmt)

    async def delete(self, id: UUID) -> bool:
        stmt = delete(DeviceModel).where(DeviceModel.id == id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def get_plant_id(self, device_id: UUID) -> Optional[UUID]:
        query = (
            select(PlantModel.id)
            .where(PlantModel.device_id == device_id)
            .order_by(PlantModel.created_at)
            .limit(1)
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def is_plant_owned_by(self, plant_id: UUID, owner_id: UUID) -> bool:
        query = select(PlantModel.id).where(
            PlantModel.id == plant_id,
            PlantModel.owner_id == owner_id,
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none() is not None
