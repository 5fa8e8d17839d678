"""
Device command entities.

A command is a single actuation request (pump on/off, light on/off, report
interval) addressed to one device. Its lifecycle is pending -> executed or
pending -> failed, and the outcome is applied at most once.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from .base import Entity, utc_now
from ..exceptions import InvalidCommandException


MAX_COMMAND_VALUE_LENGTH = 255


class CommandStatus(str, Enum):
    """Command lifecycle status."""
    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not CommandStatus.PENDING


class CommandType(str, Enum):
    """Actuation command types understood by planter controllers."""
    PUMP = "pump"
    LIGHT = "light"
    INTERVAL = "interval"


SWITCH_VALUES = ("on", "off")


def normalize_command(
    command_type: str,
    command_value: Any,
    min_interval_seconds: int = 5,
    max_interval_seconds: int = 86400,
) -> tuple:
    """
    Validate a command type/value pair and return its canonical form.

    Args:
        command_type: Raw command type.
        command_value: Raw command value.
        min_interval_seconds: Lower bound for interval commands.
        max_interval_seconds: Upper bound for interval commands.

    Returns:
        Tuple of (CommandType, normalized value string).

    Raises:
        InvalidCommandException: If the type is unknown or the value is malformed.
    """
    try:
        ctype = CommandType(str(command_type).strip().lower())
    except ValueError:
        raise InvalidCommandException(
            f"Unknown command type '{command_type}'",
            field="commandType",
        )

    if command_value is None:
        raise InvalidCommandException("Command value is required", field="commandValue")

    value = str(command_value).strip()
    if not value:
        raise InvalidCommandException("Command value is required", field="commandValue")
    if len(value) > MAX_COMMAND_VALUE_LENGTH:
        raise InvalidCommandException(
            f"Command value longer than {MAX_COMMAND_VALUE_LENGTH} characters",
            field="commandValue",
        )

    if ctype in (CommandType.PUMP, CommandType.LIGHT):
        value = value.lower()
        if value not in SWITCH_VALUES:
            raise InvalidCommandException(
                f"{ctype.value} value must be one of {', '.join(SWITCH_VALUES)}",
                field="commandValue",
            )
    elif ctype == CommandType.INTERVAL:
        if not value.isdigit():
            raise InvalidCommandException(
                "interval value must be a whole number of seconds",
                field="commandValue",
            )
        seconds = int(value)
        if not min_interval_seconds <= seconds <= max_interval_seconds:
            raise InvalidCommandException(
                f"interval must be between {min_interval_seconds} and "
                f"{max_interval_seconds} seconds",
                field="commandValue",
            )
        value = str(seconds)

    return ctype, value


@dataclass
class DeviceCommand(Entity):
    """
    A command queued for a device.

    `device_id` is the internal device key; `device_ref` carries the opaque
    device identifier so push payloads and events can be addressed without
    another lookup.
    """
    device_id: Optional[UUID] = None
    device_ref: str = ""
    command_type: str = CommandType.PUMP.value
    command_value: str = ""
    status: CommandStatus = CommandStatus.PENDING
    executed_at: Optional[datetime] = None
    sequence: Optional[int] = None
    created_by: Optional[UUID] = None

    def apply_outcome(self, outcome: CommandStatus, at: Optional[datetime] = None) -> bool:
        """
        Apply a terminal outcome.

        Returns:
            True if the transition happened, False if the command was
            already terminal (duplicate report).
        """
        if not outcome.is_terminal:
            raise InvalidCommandException(
                f"'{outcome.value}' is not a command outcome",
                field="status",
            )
        if self.is_terminal():
            return False
        self.status = outcome
        self.executed_at = at or utc_now()
        self.updated_at = self.executed_at
        return True

    def is_pending(self) -> bool:
        return self.status == CommandStatus.PENDING

    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_push_payload(self) -> Dict[str, Any]:
        """Payload sent to a device over its live channel."""
        return {
            "id": str(self.id),
            "commandType": self.command_type,
            "commandValue": self.command_value,
        }
