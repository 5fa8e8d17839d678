"""
Unit tests for DeliveryRouter.
"""
import pytest
from unittest.mock import AsyncMock

from clayx_relay.application.services import DeliveryRouter, EventFanout, PresenceTracker
from factories import CommandFactory
from fakes import RecordingChannel


@pytest.fixture
def presence():
    return PresenceTracker(EventFanout())


@pytest.fixture
def router(presence):
    return DeliveryRouter(presence)


class TestDispatch:

    @pytest.mark.asyncio
    async def test_push_to_reachable_device(self, router, presence):
        """Test a reachable device gets exactly one push."""
        channel = RecordingChannel()
        await presence.mark_online("planter-001", channel)
        command = CommandFactory(device_ref="planter-001", command_type="pump", command_value="on")

        assert await router.dispatch(command) is True

        assert channel.pushed == [command.to_push_payload()]
        assert router.get_stats()["pushed"] == 1

    @pytest.mark.asyncio
    async def test_unknown_device_left_for_poll(self, router):
        """Test a device never seen is not pushed to."""
        command = CommandFactory(device_ref="planter-001")

        assert await router.dispatch(command) is False
        assert router.get_stats()["deferred"] == 1

    @pytest.mark.asyncio
    async def test_online_without_channel_left_for_poll(self, router, presence):
        """Test a polling-only device is not pushed to."""
        await presence.mark_online("planter-001")

        assert await router.dispatch(CommandFactory(device_ref="planter-001")) is False

    @pytest.mark.asyncio
    async def test_offline_device_left_for_poll(self, router, presence):
        channel = RecordingChannel()
        token = await presence.mark_online("planter-001", channel)
        await presence.mark_offline("planter-001", token)

        assert await router.dispatch(CommandFactory(device_ref="planter-001")) is False
        assert channel.pushed == []

    @pytest.mark.asyncio
    async def test_closed_channel_is_a_soft_failure(self, router, presence):
        """Test a dead channel leaves the command for polling."""
        channel = RecordingChannel()
        await presence.mark_online("planter-001", channel)
        channel.closed = True

        assert await router.dispatch(CommandFactory(device_ref="planter-001")) is False
        assert router.get_stats()["push_failures"] == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_a_soft_failure(self, router, presence):
        channel = AsyncMock()
        channel.push.side_effect = ConnectionError("reset")
        await presence.mark_online("planter-001", channel)

        assert await router.dispatch(CommandFactory(device_ref="planter-001")) is False

    @pytest.mark.asyncio
    async def test_push_goes_to_newest_channel(self, router, presence):
        """Test only the current session receives the push."""
        old = RecordingChannel("old")
        new = RecordingChannel("new")
        await presence.mark_online("planter-001", old)
        await presence.mark_online("planter-001", new)

        await router.dispatch(CommandFactory(device_ref="planter-001"))

        assert old.pushed == []
        assert len(new.pushed) == 1
