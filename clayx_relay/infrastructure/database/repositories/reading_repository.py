"""
Repository for the sensor reading log.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import SensorReadingModel
from ....application.interfaces.repositories import ReadingRepository
from ....domain.entities.telemetry import SensorReading


class SQLAlchemyReadingRepository(ReadingRepository):
    """Append-only sensor readings."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, reading: SensorReading) -> SensorReading:
        """
        Append a reading.

        Args:
            reading: Reading to store.

        Returns:
            The reading with its generated ID.
        """
        model = SensorReadingModel(
            device_id=reading.device_id,
            plant_id=reading.plant_id,
            temperature=reading.temperature,
            humidity=reading.humidity,
            soil_moisture=reading.soil_moisture,
            water_level=reading.water_level,
            light_level=reading.light_level,
            timestamp=reading.timestamp,
        )

        self._session.add(model)
        await self._session.flush()

        reading.id = model.id
        return reading

    async def get_latest_for_plant(self, plant_id: UUID) -> Optional[SensorReading]:
        query = (
            select(SensorReadingModel)
            .where(SensorReadingModel.plant_id == plant_id)
            .order_by(desc(SensorReadingModel.timestamp))
            .limit(1)
        )
        result = await self._session.execute(query)
        model = result.scalar_one_or_none()

        return model.to_domain() if model else None
