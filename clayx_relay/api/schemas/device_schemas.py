"""
Pydantic schemas for device API endpoints.
"""
from datetime import datetime
from typing import List, Optional

from .command_schemas import CamelModel
from ...domain.entities.device import Device


class DeviceResponse(CamelModel):
    """A device with its live presence."""
    device_id: str
    is_online: bool
    last_seen: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, device: Device) -> "DeviceResponse":
        return cls(
            device_id=device.device_id,
            is_online=device.is_online,
            last_seen=device.last_seen,
            created_at=device.created_at,
        )


class DeviceListResponse(CamelModel):
    devices: List[DeviceResponse]
    total: int


class DeviceDeleteResponse(CamelModel):
    device_id: str
    purged_commands: int
