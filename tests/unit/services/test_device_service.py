"""
Unit tests for DeviceService.

Tests device listing with live presence and the deletion hook.
"""
import pytest

from clayx_relay.domain.entities import CommandStatus
from clayx_relay.domain.exceptions import AuthorizationException, EntityNotFoundException
from fakes import RecordingChannel


class TestLookup:

    @pytest.mark.asyncio
    async def test_get_device(self, services, device):
        found = await services.devices.get_device("planter-001")
        assert found.id == device.id

    @pytest.mark.asyncio
    async def test_get_unknown_device(self, services):
        with pytest.raises(EntityNotFoundException):
            await services.devices.get_device("ghost")

    @pytest.mark.asyncio
    async def test_find_unknown_device(self, services):
        assert await services.devices.find_device("ghost") is None

    @pytest.mark.asyncio
    async def test_owned_device_ids(self, services, store, owner_id, other_user_id):
        store.add_device("planter-002", owner_id=owner_id)
        store.add_device("planter-999", owner_id=other_user_id)

        ids = await services.devices.owned_device_ids(owner_id)

        assert sorted(ids) == ["planter-001", "planter-002"]


class TestListDevices:

    @pytest.mark.asyncio
    async def test_presence_overlay(self, services, store, owner_id):
        """Test listed devices reflect in-memory presence."""
        store.add_device("planter-002", owner_id=owner_id)
        await services.presence.mark_online("planter-001", RecordingChannel())
        # Persisted flag disagrees; the tracker wins
        store.device_by_ref("planter-001").is_online = False

        devices = {d.device_id: d for d in await services.devices.list_devices(owner_id)}

        assert devices["planter-001"].is_online is True
        assert devices["planter-001"].last_seen is not None
        assert devices["planter-002"].is_online is False
        assert devices["planter-002"].last_seen is None

    @pytest.mark.asyncio
    async def test_other_owner_sees_nothing(self, services, other_user_id):
        assert await services.devices.list_devices(other_user_id) == []


class TestDeleteDevice:

    @pytest.mark.asyncio
    async def test_delete_purges_commands_and_presence(self, services, store, owner_id):
        """Test deletion removes commands in every state and the live session."""
        done = await services.commands.enqueue(owner_id, "planter-001", "pump", "on")
        await services.commands.enqueue(owner_id, "planter-001", "pump", "off")
        await services.commands.report_outcome(done.id, CommandStatus.EXECUTED)
        channel = RecordingChannel("socket")
        observer = RecordingChannel("observer")
        await services.presence.mark_online("planter-001", channel)
        services.fanout.subscribe("planter-001", observer)

        purged = await services.devices.delete_device(owner_id, "planter-001")

        assert purged == 2
        assert store.commands == {}
        assert store.device_by_ref("planter-001") is None
        assert services.presence.snapshot("planter-001") is None
        assert services.fanout.subscribers("planter-001") == set()
        assert channel.close_calls == 1

    @pytest.mark.asyncio
    async def test_delete_unknown(self, services, owner_id):
        with pytest.raises(EntityNotFoundException):
            await services.devices.delete_device(owner_id, "ghost")

    @pytest.mark.asyncio
    async def test_delete_foreign(self, services, store, other_user_id):
        with pytest.raises(AuthorizationException):
            await services.devices.delete_device(other_user_id, "planter-001")
        assert store.device_by_ref("planter-001") is not None
