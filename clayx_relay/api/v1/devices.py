"""
Device API endpoints.

Device polling for pending commands, command history, the owner's device
list and device deletion.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from ..dependencies import (
    get_command_store,
    get_current_user_id,
    get_device_service,
    get_presence_tracker,
)
from ..schemas import (
    CommandListResponse,
    CommandResponse,
    DeviceDeleteResponse,
    DeviceListResponse,
    DeviceResponse,
    PendingCommand,
    PendingCommandsResponse,
)
from ...application.services import CommandStore, DeviceService, PresenceTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/devices", tags=["Devices"])


@router.get(
    "",
    response_model=DeviceListResponse,
    summary="List my devices",
)
async def list_devices(
    user_id: UUID = Depends(get_current_user_id),
    devices: DeviceService = Depends(get_device_service),
) -> DeviceListResponse:
    """
    List the caller's devices with live presence.
    """
    items = await devices.list_devices(user_id)
    return DeviceListResponse(
        devices=[DeviceResponse.from_entity(device) for device in items],
        total=len(items),
    )


@router.delete(
    "/{device_id}",
    response_model=DeviceDeleteResponse,
    summary="Delete a device",
    description="Delete an owned device. All of its commands are purged and any live socket is closed.",
)
async def delete_device(
    device_id: str,
    user_id: UUID = Depends(get_current_user_id),
    devices: DeviceService = Depends(get_device_service),
) -> DeviceDeleteResponse:
    purged = await devices.delete_device(user_id, device_id)
    return DeviceDeleteResponse(device_id=device_id, purged_commands=purged)


@router.get(
    "/{device_id}/commands/pending",
    response_model=PendingCommandsResponse,
    summary="Poll pending commands",
    description="Called by devices. Lists pending commands oldest first without changing their state.",
)
async def poll_pending_commands(
    device_id: str,
    store: CommandStore = Depends(get_command_store),
    presence: PresenceTracker = Depends(get_presence_tracker),
) -> PendingCommandsResponse:
    commands = await store.list_pending(device_id)
    await presence.touch(device_id)

    return PendingCommandsResponse(
        device_id=device_id,
        commands=[PendingCommand.from_entity(command) for command in commands],
        count=len(commands),
    )


@router.get(
    "/{device_id}/commands",
    response_model=CommandListResponse,
    summary="Command history",
)
async def get_command_history(
    device_id: str,
    limit: Optional[int] = Query(default=None, ge=1),
    user_id: UUID = Depends(get_current_user_id),
    store: CommandStore = Depends(get_command_store),
) -> CommandListResponse:
    """
    Most recent commands of an owned device, newest first.
    """
    commands = await store.command_history(user_id, device_id, limit=limit)
    return CommandListResponse(
        device_id=device_id,
        commands=[CommandResponse.from_entity(command) for command in commands],
        total=len(commands),
    )
