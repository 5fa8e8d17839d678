"""
Unit tests for SQLAlchemyDeviceRepository and SQLAlchemyReadingRepository.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

from clayx_relay.domain.entities import SensorReading
from clayx_relay.infrastructure.database.models import DeviceModel, SensorReadingModel
from clayx_relay.infrastructure.database.repositories import (
    SQLAlchemyDeviceRepository,
    SQLAlchemyReadingRepository,
)


@pytest.fixture
def devices(mock_session):
    return SQLAlchemyDeviceRepository(mock_session)


@pytest.fixture
def readings(mock_session):
    return SQLAlchemyReadingRepository(mock_session)


def make_device_model(**overrides) -> DeviceModel:
    values = dict(
        id=uuid4(),
        device_id="planter-001",
        owner_id=uuid4(),
        is_online=False,
        last_seen=None,
        created_at=datetime.now(timezone.utc),
    )
    values.update(overrides)
    return DeviceModel(**values)


class TestDeviceLookup:

    @pytest.mark.asyncio
    async def test_get_by_device_id(self, devices, mock_session):
        model = make_device_model()
        mock_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=model))

        device = await devices.get_by_device_id("planter-001")

        assert device.id == model.id
        assert device.owner_id == model.owner_id
        assert device.device_id == "planter-001"

    @pytest.mark.asyncio
    async def test_unknown_device(self, devices, mock_session):
        mock_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=None))

        assert await devices.get_by_device_id("ghost") is None

    @pytest.mark.asyncio
    async def test_list_for_owner(self, devices, mock_session):
        models = [make_device_model(device_id="a"), make_device_model(device_id="b")]
        mock_session.execute.return_value = MagicMock(
            scalars=MagicMock(return_value=MagicMock(all=MagicMock(return_value=models)))
        )

        result = await devices.list_for_owner(uuid4())

        assert [d.device_id for d in result] == ["a", "b"]


class TestUpdatePresence:

    @pytest.mark.asyncio
    async def test_updates_given_fields(self, devices, mock_session):
        await devices.update_presence("planter-001", True, datetime.now(timezone.utc))

        stmt = str(mock_session.execute.await_args.args[0])
        assert stmt.startswith("UPDATE devices")
        assert "is_online" in stmt
        assert "last_seen" in stmt

    @pytest.mark.asyncio
    async def test_only_online_flag(self, devices, mock_session):
        await devices.update_presence("planter-001", False, None)

        stmt = str(mock_session.execute.await_args.args[0])
        assert "is_online" in stmt
        assert "last_seen" not in stmt

    @pytest.mark.asyncio
    async def test_nothing_to_update(self, devices, mock_session):
        await devices.update_presence("planter-001", None, None)

        mock_session.execute.assert_not_awaited()


class TestDeleteAndPlants:

    @pytest.mark.asyncio
    async def test_delete(self, devices, mock_session):
        mock_session.execute.return_value = MagicMock(rowcount=1)
        assert await devices.delete(uuid4()) is True

        mock_session.execute.return_value = MagicMock(rowcount=0)
        assert await devices.delete(uuid4()) is False

    @pytest.mark.asyncio
    async def test_plant_ownership(self, devices, mock_session):
        plant_id = uuid4()
        mock_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=plant_id))
        assert await devices.is_plant_owned_by(plant_id, uuid4()) is True

        mock_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=None))
        assert await devices.is_plant_owned_by(plant_id, uuid4()) is False


class TestReadings:

    @pytest.mark.asyncio
    async def test_create(self, readings, mock_session):
        reading = SensorReading(device_id=uuid4(), temperature=21.0)

        result = await readings.create(reading)

        assert result is reading
        model = mock_session.add.call_args.args[0]
        assert isinstance(model, SensorReadingModel)
        assert model.temperature == 21.0
        mock_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_latest_for_plant(self, readings, mock_session):
        plant_id = uuid4()
        model = SensorReadingModel(
            id=9,
            device_id=uuid4(),
            plant_id=plant_id,
            humidity=50.0,
            timestamp=datetime.now(timezone.utc),
        )
        mock_session.execute.return_value = MagicMock(scalar_one_or_none=MagicMock(return_value=model))

        reading = await readings.get_latest_for_plant(plant_id)

        assert reading.id == 9
        assert reading.humidity == 50.0
        query = str(mock_session.execute.await_args.args[0])
        assert "ORDER BY sensor_readings.timestamp DESC" in query
