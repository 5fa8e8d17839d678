"""
End-to-end relay scenarios over the in-memory store.

Exercises command store, presence, delivery router and fan-out together,
the way the REST and socket adapters drive them.
"""
import asyncio

import pytest

from clayx_relay.domain.entities import CommandStatus
from fakes import RecordingChannel

pytestmark = pytest.mark.integration

DEVICE = "planter-001"


@pytest.fixture
def observer(services):
    observer = RecordingChannel("observer")
    services.fanout.subscribe(DEVICE, observer)
    return observer


class TestPollingDevice:

    @pytest.mark.asyncio
    async def test_poll_execute_cycle(self, services, store, owner_id, observer):
        """Test a device without a socket gets its command by polling."""
        assert await services.commands.list_pending(DEVICE) == []

        command = await services.commands.enqueue(owner_id, DEVICE, "pump", "on")
        assert command.status == CommandStatus.PENDING

        pending = await services.commands.list_pending(DEVICE)
        assert [(c.id, c.command_type, c.command_value) for c in pending] == [(command.id, "pump", "on")]

        await services.commands.report_outcome(command.id, "executed")

        assert await services.commands.list_pending(DEVICE) == []
        status_events = [e for e in observer.events if e.event_type.value == "command_status_changed"]
        assert len(status_events) == 1
        assert status_events[0].data["status"] == "executed"
        assert status_events[0].data["commandId"] == str(command.id)


class TestConnectedDevice:

    @pytest.mark.asyncio
    async def test_push_and_poll_see_same_command(self, services, store, owner_id, observer):
        """Test push and poll are two views of one command with one transition."""
        channel = RecordingChannel("device")
        await services.presence.mark_online(DEVICE, channel)

        command = await services.commands.enqueue(owner_id, DEVICE, "light", "on")

        assert [p["id"] for p in channel.pushed] == [str(command.id)]
        assert [c.id for c in await services.commands.list_pending(DEVICE)] == [command.id]

        first = await services.commands.report_outcome(channel.pushed[0]["id"], "executed", device_id=DEVICE)
        second = await services.commands.report_outcome(str(command.id), "executed")

        assert first is not None
        assert second is None
        assert store.command(command.id).status == CommandStatus.EXECUTED
        assert observer.event_names().count("command_status_changed") == 1

    @pytest.mark.asyncio
    async def test_disconnect_before_outcome(self, services, store, owner_id):
        """Test a pushed command survives a disconnect and is picked up by poll."""
        channel = RecordingChannel("device")
        token = await services.presence.mark_online(DEVICE, channel)
        command = await services.commands.enqueue(owner_id, DEVICE, "pump", "off")
        assert len(channel.pushed) == 1

        await services.presence.mark_offline(DEVICE, token)
        assert store.command(command.id).status == CommandStatus.PENDING

        pending = await services.commands.list_pending(DEVICE)
        assert [c.id for c in pending] == [command.id]

        assert await services.commands.report_outcome(command.id, "failed") is not None
        assert await services.commands.report_outcome(command.id, "executed") is None
        assert store.command(command.id).status == CommandStatus.FAILED


class TestProperties:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("first,second", [
        ("executed", "executed"),
        ("executed", "failed"),
        ("failed", "executed"),
    ])
    async def test_outcome_idempotent(self, services, store, owner_id, first, second):
        command = await services.commands.enqueue(owner_id, DEVICE, "pump", "on")
        await services.commands.report_outcome(command.id, first)
        after_first = store.command(command.id)
        snapshot = (after_first.status, after_first.executed_at)

        await services.commands.report_outcome(command.id, second)

        after_second = store.command(command.id)
        assert (after_second.status, after_second.executed_at) == snapshot

    @pytest.mark.asyncio
    async def test_online_then_offline_same_handle(self, services):
        channel = RecordingChannel("device")
        token = await services.presence.mark_online(DEVICE, channel)
        await services.presence.mark_offline(DEVICE, token)

        assert services.presence.snapshot(DEVICE).online is False
        assert not services.presence.is_reachable(DEVICE)

    @pytest.mark.asyncio
    async def test_stale_handle_does_not_clear_newer_session(self, services, store, owner_id):
        """Test a late offline from a superseded socket keeps push delivery working."""
        old = RecordingChannel("old")
        new = RecordingChannel("new")
        old_token = await services.presence.mark_online(DEVICE, old)
        await services.presence.mark_online(DEVICE, new)

        await services.presence.mark_offline(DEVICE, old_token)
        await services.commands.enqueue(owner_id, DEVICE, "pump", "on")

        assert services.presence.is_reachable(DEVICE)
        assert old.pushed == []
        assert len(new.pushed) == 1
        assert store.device_by_ref(DEVICE).is_online is True

    @pytest.mark.asyncio
    async def test_push_attempts(self, services, owner_id):
        """Test one push per command when reachable and none otherwise."""
        await services.commands.enqueue(owner_id, DEVICE, "pump", "on")
        assert services.router.get_stats()["pushed"] == 0

        channel = RecordingChannel("device")
        await services.presence.mark_online(DEVICE, channel)
        await services.commands.enqueue(owner_id, DEVICE, "pump", "off")

        assert len(channel.pushed) == 1
        assert services.router.get_stats() == {"pushed": 1, "deferred": 1, "push_failures": 0}
        assert len(await services.commands.list_pending(DEVICE)) == 2

    @pytest.mark.asyncio
    async def test_pending_never_contains_terminal(self, services, owner_id):
        commands = [
            await services.commands.enqueue(owner_id, DEVICE, "interval", str(60 + i))
            for i in range(4)
        ]
        await services.commands.report_outcome(commands[0].id, "executed")
        await services.commands.report_outcome(commands[2].id, "failed")

        pending = await services.commands.list_pending(DEVICE)

        assert [c.id for c in pending] == [commands[1].id, commands[3].id]
        assert all(c.status == CommandStatus.PENDING for c in pending)

    @pytest.mark.asyncio
    async def test_concurrent_reports_single_transition(self, services, store, owner_id, observer):
        """Test racing reports from both channels apply one outcome and one event."""
        command = await services.commands.enqueue(owner_id, DEVICE, "pump", "on")

        results = await asyncio.gather(
            services.commands.report_outcome(command.id, "executed", device_id=DEVICE),
            services.commands.report_outcome(str(command.id), "failed"),
            services.commands.report_outcome(command.id, "executed"),
        )

        assert sum(1 for r in results if r is not None) == 1
        assert observer.event_names().count("command_status_changed") == 1
        assert store.command(command.id).is_terminal()

    @pytest.mark.asyncio
    async def test_presence_events_in_order(self, services, observer):
        """Test observers see presence changes in the order they happened."""
        token = await services.presence.mark_online(DEVICE, RecordingChannel("device"))
        await services.telemetry.record(DEVICE, {"temperature": 19.0})
        await services.presence.mark_offline(DEVICE, token)

        assert observer.event_names() == ["presence_changed", "telemetry_recorded", "presence_changed"]
        assert [e.data.get("online") for e in observer.events] == [True, None, False]
