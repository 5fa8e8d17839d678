"""
API request/response schemas.
"""
from .command_schemas import (
    CamelModel,
    CommandCreateRequest,
    CommandListResponse,
    CommandResponse,
    CommandStatusRequest,
    CommandStatusResponse,
    PendingCommand,
    PendingCommandsResponse,
)
from .device_schemas import DeviceDeleteResponse, DeviceListResponse, DeviceResponse
from .sensor_schemas import SensorDataRequest, SensorReadingResponse

__all__ = [
    "CamelModel",
    "CommandCreateRequest",
    "CommandListResponse",
    "CommandResponse",
    "CommandStatusRequest",
    "CommandStatusResponse",
    "PendingCommand",
    "PendingCommandsResponse",
    "DeviceDeleteResponse",
    "DeviceListResponse",
    "DeviceResponse",
    "SensorDataRequest",
    "SensorReadingResponse",
]
