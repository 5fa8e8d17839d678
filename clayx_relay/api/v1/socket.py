"""
Persistent socket adapter.

One WebSocket endpoint serves both parties:

- Observers (mobile app) connect with a bearer token and are subscribed to
  every device they own. They may queue commands and read the latest
  reading of a plant.
- Devices connect with `deviceId` and no token. They are marked online with
  their own channel handle, receive pushed commands, and report telemetry
  and command outcomes.

Frames in both directions are `{"event": <name>, "data": {...}}`.
"""
import json
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from ..dependencies import get_jwt_handler, get_relay_services
from ...application.services import RelayServices
from ...domain.entities.base import utc_now
from ...domain.entities.command import CommandStatus
from ...domain.exceptions import (
    ChannelUnavailableException,
    DomainException,
    PersistenceException,
)
from ...infrastructure.channels import WebSocketChannel
from ...infrastructure.security import JWTHandler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Socket"])

# Inbound device events carrying a command outcome
OUTCOME_EVENTS = {
    "command_executed": CommandStatus.EXECUTED,
    "command_failed": CommandStatus.FAILED,
}


def _bearer_token(websocket: WebSocket) -> Optional[str]:
    header = websocket.headers.get("authorization")
    if header and header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


def _error_payload(exc: DomainException) -> Dict[str, Any]:
    if isinstance(exc, PersistenceException):
        return {"error": "Server error", "code": exc.code}
    return {"error": exc.message, "code": exc.code}


async def _receive_frame(websocket: WebSocket, channel: WebSocketChannel) -> Optional[Dict[str, Any]]:
    """Read one frame; binary or malformed frames are answered with an error event."""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

    text = message.get("text")
    if text is None:
        channel.send("error", {"error": "Binary frames are not supported"})
        return None
    try:
        frame = json.loads(text)
    except ValueError:
        channel.send("error", {"error": "Malformed frame"})
        return None
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        channel.send("error", {"error": "Frame must be an object with an 'event' field"})
        return None
    if not isinstance(frame.get("data"), dict):
        frame["data"] = {}
    return frame


@router.websocket("/ws")
async def relay_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    device_id: Optional[str] = Query(default=None, alias="deviceId"),
    services: RelayServices = Depends(get_relay_services),
    jwt_handler: JWTHandler = Depends(get_jwt_handler),
):
    """Classify the connecting party and serve it until it disconnects."""
    token = token or _bearer_token(websocket)

    if token:
        user_id = jwt_handler.get_user_id(token)
        if user_id is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
            return
        await _serve_observer(websocket, services, user_id)
        return

    if device_id:
        try:
            device = await services.devices.find_device(device_id)
        except PersistenceException:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Server error")
            return
        if device is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Unknown device")
            return
        await _serve_device(websocket, services, device_id)
        return

    await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication required")


# =============================================================================
# Devices
# =============================================================================

async def _serve_device(websocket: WebSocket, services: RelayServices, device_id: str) -> None:
    await websocket.accept()
    channel = WebSocketChannel(
        websocket,
        label=device_id,
        queue_size=services.settings.outbound_queue_size,
    )
    channel.start()

    session_token = await services.presence.mark_online(device_id, channel)
    services.fanout.subscribe(device_id, channel)
    logger.info(f"Device {device_id} connected (session {session_token})")

    try:
        while True:
            frame = await _receive_frame(websocket, channel)
            if frame is not None:
                await _handle_device_frame(services, channel, device_id, frame["event"], frame["data"])
    except WebSocketDisconnect:
        logger.info(f"Device {device_id} disconnected (session {session_token})")
    except ChannelUnavailableException as e:
        logger.warning(f"Device {device_id} channel dropped: {e.message}")
    finally:
        services.fanout.unsubscribe_all(channel)
        await services.presence.mark_offline(device_id, session_token)
        await channel.stop()


async def _handle_device_frame(
    services: RelayServices,
    channel: WebSocketChannel,
    device_id: str,
    event: str,
    data: Dict[str, Any],
) -> None:
    if event == "sensor_data":
        try:
            reading = await services.telemetry.record(device_id, data)
        except DomainException as e:
            logger.warning(f"Sensor data from {device_id} rejected: {e.message}")
            channel.send("sensor_ack", {"success": False, **_error_payload(e)})
            return
        channel.send("sensor_ack", {"success": True, "readingId": reading.id})

    elif event in OUTCOME_EVENTS or event == "command_status":
        outcome = OUTCOME_EVENTS.get(event) or data.get("status")
        try:
            await services.commands.report_outcome(data.get("commandId"), outcome, device_id=device_id)
        except DomainException as e:
            logger.warning(f"Outcome from {device_id} rejected: {e.message}")
            channel.send("error", _error_payload(e))

    elif event == "ping":
        channel.send("pong", {"time": utc_now().isoformat()})

    else:
        channel.send("error", {"error": f"Unknown event '{event}'"})


# =============================================================================
# Observers
# =============================================================================

async def _serve_observer(websocket: WebSocket, services: RelayServices, user_id: UUID) -> None:
    try:
        device_ids = await services.devices.owned_device_ids(user_id)
    except PersistenceException:
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason="Server error")
        return

    await websocket.accept()
    channel = WebSocketChannel(
        websocket,
        label=str(user_id),
        queue_size=services.settings.outbound_queue_size,
    )
    channel.start()

    for device_id in device_ids:
        services.fanout.subscribe(device_id, channel)
    logger.info(f"User {user_id} connected, observing {len(device_ids)} devices")

    try:
        while True:
            frame = await _receive_frame(websocket, channel)
            if frame is not None:
                await _handle_observer_frame(services, channel, user_id, frame["event"], frame["data"])
    except WebSocketDisconnect:
        logger.info(f"User {user_id} disconnected")
    except ChannelUnavailableException as e:
        logger.warning(f"User {user_id} channel dropped: {e.message}")
    finally:
        services.fanout.unsubscribe_all(channel)
        await channel.stop()


async def _handle_observer_frame(
    services: RelayServices,
    channel: WebSocketChannel,
    user_id: UUID,
    event: str,
    data: Dict[str, Any],
) -> None:
    if event == "send_command":
        try:
            command = await services.commands.enqueue(
                caller_id=user_id,
                device_id=str(data.get("deviceId") or ""),
                command_type=data.get("commandType"),
                command_value=data.get("commandValue"),
            )
        except DomainException as e:
            channel.send("command_error", _error_payload(e))
            return
        channel.send("command_sent", {"commandId": str(command.id), "status": command.status.value})

    elif event == "get_sensor_data":
        plant_id = data.get("plantId")
        try:
            plant_uuid = UUID(str(plant_id))
        except ValueError:
            channel.send("error", {"error": f"Invalid plant id '{plant_id}'"})
            return
        try:
            reading = await services.telemetry.latest_for_plant(user_id, plant_uuid)
        except DomainException as e:
            channel.send("error", _error_payload(e))
            return
        channel.send("sensor_data_response", {
            "plantId": str(plant_uuid),
            "data": reading.to_dict() if reading else None,
        })

    elif event == "ping":
        channel.send("pong", {"time": utc_now().isoformat()})

    else:
        channel.send("error", {"error": f"Unknown event '{event}'"})
