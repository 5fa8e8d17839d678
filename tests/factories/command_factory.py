"""
Command test data factories.
"""
from datetime import datetime, timezone
from uuid import uuid4

import factory

from clayx_relay.domain.entities import CommandStatus, DeviceCommand


class CommandFactory(factory.Factory):
    """
    Factory for DeviceCommand entities.

    Usage:
        command = CommandFactory()
        command = CommandFactory(command_type="light", command_value="off")
    """

    class Meta:
        model = DeviceCommand

    id = factory.LazyFunction(uuid4)
    device_id = factory.LazyFunction(uuid4)
    device_ref = factory.Sequence(lambda n: f"planter-{n:03d}")
    command_type = factory.Iterator(["pump", "light"])
    command_value = factory.Iterator(["on", "off"])
    status = CommandStatus.PENDING
    created_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))
    executed_at = None
    sequence = factory.Sequence(lambda n: n + 1)
    created_by = factory.LazyFunction(uuid4)


class PendingCommandFactory(CommandFactory):
    """Factory for pending commands."""

    status = CommandStatus.PENDING


class ExecutedCommandFactory(CommandFactory):
    """Factory for executed commands."""

    status = CommandStatus.EXECUTED
    executed_at = factory.LazyAttribute(lambda o: o.created_at)


class FailedCommandFactory(CommandFactory):
    """Factory for failed commands."""

    status = CommandStatus.FAILED
    executed_at = factory.LazyAttribute(lambda o: o.created_at)
