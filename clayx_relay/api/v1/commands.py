"""
Command API endpoints.

Command submission by the mobile app and outcome reports by devices.
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..dependencies import (
    get_command_store,
    get_current_user_id,
    get_device_service,
    get_presence_tracker,
)
from ..schemas import (
    CommandCreateRequest,
    CommandResponse,
    CommandStatusRequest,
    CommandStatusResponse,
)
from ...application.services import CommandStore, DeviceService, PresenceTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commands", tags=["Commands"])


@router.post(
    "",
    response_model=CommandResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Queue a command",
    description="Queue a command for a device owned by the caller. The command is pushed at once if the device holds a live socket.",
)
async def create_command(
    request: CommandCreateRequest,
    user_id: UUID = Depends(get_current_user_id),
    store: CommandStore = Depends(get_command_store),
) -> CommandResponse:
    command = await store.enqueue(
        caller_id=user_id,
        device_id=request.device_id,
        command_type=request.command_type,
        command_value=request.command_value,
    )
    return CommandResponse.from_entity(command)


@router.post(
    "/{command_id}/status",
    response_model=CommandStatusResponse,
    summary="Report command outcome",
    description="Report executed or failed. Idempotent: duplicate reports succeed without changing state.",
)
async def report_command_status(
    command_id: str,
    request: CommandStatusRequest,
    store: CommandStore = Depends(get_command_store),
    presence: PresenceTracker = Depends(get_presence_tracker),
    devices: DeviceService = Depends(get_device_service),
) -> CommandStatusResponse:
    command = await store.report_outcome(command_id, request.status, device_id=request.device_id)

    # Duplicate reports still count as device activity
    if command is not None:
        await presence.touch(command.device_ref)
    elif request.device_id and await devices.find_device(request.device_id) is not None:
        await presence.touch(request.device_id)

    return CommandStatusResponse(
        command_id=command_id,
        status=request.status,
        applied=command is not None,
    )
