"""
Unit tests for TelemetryService.
"""
import pytest
from uuid import uuid4

from clayx_relay.domain.exceptions import AuthorizationException, EntityNotFoundException
from factories import SensorReportFactory
from fakes import RecordingChannel


class TestRecord:

    @pytest.mark.asyncio
    async def test_record_stores_and_fans_out(self, services, store, plant):
        """Test a reading is stored against the device's plant and broadcast."""
        observer = RecordingChannel("observer")
        services.fanout.subscribe("planter-001", observer)
        report = SensorReportFactory()

        reading = await services.telemetry.record("planter-001", report)

        assert reading.id is not None
        assert reading.plant_id == plant.id
        assert reading.soil_moisture == report["soilMoisture"]
        assert len(store.readings) == 1
        assert observer.event_names() == ["telemetry_recorded"]
        assert observer.events[0].data["reading"]["id"] == reading.id
        assert observer.events[0].data["plantId"] == str(plant.id)

    @pytest.mark.asyncio
    async def test_record_touches_presence(self, services):
        """Test telemetry refreshes last seen."""
        await services.telemetry.record("planter-001", {"temperature": 20})

        assert services.presence.snapshot("planter-001").last_seen is not None

    @pytest.mark.asyncio
    async def test_device_without_plant(self, services, store, owner_id):
        store.add_device("planter-002", owner_id=owner_id)

        reading = await services.telemetry.record("planter-002", {"humidity": 40})

        assert reading.plant_id is None

    @pytest.mark.asyncio
    async def test_unknown_device(self, services, store):
        with pytest.raises(EntityNotFoundException):
            await services.telemetry.record("ghost", {"temperature": 20})
        assert store.readings == []


class TestLatestForPlant:

    @pytest.mark.asyncio
    async def test_latest(self, services, owner_id, plant):
        await services.telemetry.record("planter-001", {"temperature": 20})
        latest = await services.telemetry.record("planter-001", {"temperature": 25})

        reading = await services.telemetry.latest_for_plant(owner_id, plant.id)

        assert reading.id == latest.id
        assert reading.temperature == 25.0

    @pytest.mark.asyncio
    async def test_no_readings(self, services, owner_id, plant):
        assert await services.telemetry.latest_for_plant(owner_id, plant.id) is None

    @pytest.mark.asyncio
    async def test_foreign_plant(self, services, other_user_id, plant):
        with pytest.raises(AuthorizationException):
            await services.telemetry.latest_for_plant(other_user_id, plant.id)

    @pytest.mark.asyncio
    async def test_unknown_plant(self, services, owner_id):
        with pytest.raises(AuthorizationException):
            await services.telemetry.latest_for_plant(owner_id, uuid4())
