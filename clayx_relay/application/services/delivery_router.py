"""
Delivery Router.

Decides, per command, between push delivery over a device's live channel
and poll pickup. Push is attempted at most once; the command stays pending
either way, so the pending queue is the single source of truth and the
push is only a fast path. Duplicate delivery is made safe by idempotent
outcome reporting in the command store.
"""
import logging
from typing import Any, Dict, Protocol

from ...domain.entities.command import DeviceCommand
from ...domain.exceptions import ChannelUnavailableException
from .presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)


class PushChannel(Protocol):
    """A live channel able to push a command to its device."""

    async def push(self, payload: Dict[str, Any]) -> None:
        """
        Send a command payload.

        Raises:
            ChannelUnavailableException: If the channel is closed.
        """
        ...


class DeliveryRouter:
    """Push-or-poll decision for newly enqueued commands."""

    def __init__(self, presence: PresenceTracker):
        self._presence = presence

        # Statistics
        self._pushed = 0
        self._deferred = 0
        self._push_failures = 0

    async def dispatch(self, command: DeviceCommand) -> bool:
        """
        Deliver a pending command if its device is reachable.

        Args:
            command: Freshly stored pending command.

        Returns:
            True if the command was pushed, False if it was left for polling.
        """
        channel = self._presence.channel_handle(command.device_ref)
        if channel is None:
            self._deferred += 1
            logger.debug(f"Device {command.device_ref} not reachable, command {command.id} left for poll")
            return False

        try:
            await channel.push(command.to_push_payload())
        except (ChannelUnavailableException, ConnectionError) as e:
            self._push_failures += 1
            logger.info(f"Push of command {command.id} to {command.device_ref} failed, left for poll: {e}")
            return False

        self._pushed += 1
        logger.info(f"Pushed command {command.id} ({command.command_type}={command.command_value}) to {command.device_ref}")
        return True

    def get_stats(self) -> Dict[str, int]:
        return {
            "pushed": self._pushed,
            "deferred": self._deferred,
            "push_failures": self._push_failures,
        }
