"""
Pydantic schemas for sensor data endpoints.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import Field

from .command_schemas import CamelModel
from ...domain.entities.telemetry import SensorReading


class SensorDataRequest(CamelModel):
    """Reading reported by a planter controller."""
    device_id: str = Field(..., min_length=1, max_length=100)
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = None
    water_level: Optional[float] = None
    light_level: Optional[float] = None

    def to_report(self) -> Dict[str, Any]:
        """Reading values keyed by wire name."""
        return self.model_dump(by_alias=True, exclude={"device_id"})


class SensorReadingResponse(CamelModel):
    id: Optional[int] = None
    plant_id: Optional[UUID] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = None
    water_level: Optional[float] = None
    light_level: Optional[float] = None
    timestamp: datetime

    @classmethod
    def from_entity(cls, reading: SensorReading) -> "SensorReadingResponse":
        return cls(
            id=reading.id,
            plant_id=reading.plant_id,
            temperature=reading.temperature,
            humidity=reading.humidity,
            soil_moisture=reading.soil_moisture,
            water_level=reading.water_level,
            light_level=reading.light_level,
            timestamp=reading.timestamp,
        )
