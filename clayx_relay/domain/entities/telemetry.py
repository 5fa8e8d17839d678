"""
Sensor reading entities.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from .base import utc_now


# Wire name -> attribute name for readings reported by controllers
READING_FIELDS = {
    "temperature": "temperature",
    "humidity": "humidity",
    "soilMoisture": "soil_moisture",
    "waterLevel": "water_level",
    "lightLevel": "light_level",
}


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class SensorReading:
    """
    One telemetry sample from a planter controller.
    """
    device_id: UUID
    plant_id: Optional[UUID] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    soil_moisture: Optional[float] = None
    water_level: Optional[float] = None
    light_level: Optional[float] = None
    timestamp: datetime = field(default_factory=utc_now)
    id: Optional[int] = None

    @classmethod
    def from_report(
        cls,
        device_id: UUID,
        plant_id: Optional[UUID],
        report: Dict[str, Any],
    ) -> "SensorReading":
        """Build a reading from a controller report (camelCase keys)."""
        values = {attr: _to_float(report.get(key)) for key, attr in READING_FIELDS.items()}
        return cls(device_id=device_id, plant_id=plant_id, **values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "plantId": str(self.plant_id) if self.plant_id else None,
            "temperature": self.temperature,
            "humidity": self.humidity,
            "soilMoisture": self.soil_moisture,
            "waterLevel": self.water_level,
            "lightLevel": self.light_level,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
