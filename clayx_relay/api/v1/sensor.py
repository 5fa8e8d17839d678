"""
Sensor data endpoints.
"""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_current_user_id, get_telemetry_service
from ..schemas import SensorDataRequest, SensorReadingResponse
from ...application.services import TelemetryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sensor", tags=["Sensor"])


@router.post(
    "/data",
    response_model=SensorReadingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report sensor data",
    description="Called by devices that do not hold a socket. Stores the reading and notifies observers.",
)
async def post_sensor_data(
    request: SensorDataRequest,
    telemetry: TelemetryService = Depends(get_telemetry_service),
) -> SensorReadingResponse:
    reading = await telemetry.record(request.device_id, request.to_report())
    return SensorReadingResponse.from_entity(reading)


@router.get(
    "/plants/{plant_id}/latest",
    response_model=SensorReadingResponse,
    summary="Latest reading of a plant",
)
async def get_latest_reading(
    plant_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    telemetry: TelemetryService = Depends(get_telemetry_service),
) -> SensorReadingResponse:
    reading = await telemetry.latest_for_plant(user_id, plant_id)
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No sensor data available",
        )
    return SensorReadingResponse.from_entity(reading)
