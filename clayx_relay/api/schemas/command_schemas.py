"""
Pydantic schemas for command API endpoints.

Field names are camelCase on the wire, matching the planter firmware and
mobile app.
"""
from datetime import datetime
from typing import List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ...domain.entities.command import DeviceCommand


class CamelModel(BaseModel):
    """Base schema serialized with camelCase aliases."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CommandCreateRequest(CamelModel):
    """Request to queue a device command."""
    device_id: str = Field(..., min_length=1, max_length=100)
    command_type: str = Field(..., min_length=1, max_length=50)
    command_value: Union[str, int]


class CommandResponse(CamelModel):
    """Response for command information."""
    id: UUID
    device_id: str
    command_type: str
    command_value: str
    status: str
    created_at: datetime
    executed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, command: DeviceCommand) -> "CommandResponse":
        return cls(
            id=command.id,
            device_id=command.device_ref,
            command_type=command.command_type,
            command_value=command.command_value,
            status=command.status.value,
            created_at=command.created_at,
            executed_at=command.executed_at,
        )


class CommandListResponse(CamelModel):
    """Response for command history."""
    device_id: str
    commands: List[CommandResponse]
    total: int


class PendingCommand(CamelModel):
    """A pending command as a polling device sees it."""
    id: UUID
    command_type: str
    command_value: str

    @classmethod
    def from_entity(cls, command: DeviceCommand) -> "PendingCommand":
        return cls(
            id=command.id,
            command_type=command.command_type,
            command_value=command.command_value,
        )


class PendingCommandsResponse(CamelModel):
    """Response to a device poll."""
    device_id: str
    commands: List[PendingCommand]
    count: int


class CommandStatusRequest(CamelModel):
    """Outcome report from a device."""
    status: Literal["executed", "failed"]
    device_id: Optional[str] = None


class CommandStatusResponse(CamelModel):
    """
    Outcome report acknowledgment.

    `applied` is False when the report was a duplicate or referenced an
    unknown command; the request still succeeds.
    """
    command_id: str
    status: str
    applied: bool
