"""
Event Fan-out.

Broadcasts presence, telemetry and command status events to every
subscriber of a device. Subscriptions are held here explicitly
(device -> set of subscribers) so that fan-out does not depend on any
transport's grouping primitive.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Set

from ...domain.entities.event import RelayEvent
from ...domain.exceptions import ChannelUnavailableException

logger = logging.getLogger(__name__)


class EventSubscriber(Protocol):
    """Anything that can receive relay events."""

    def deliver(self, event: RelayEvent) -> None:
        """
        Hand an event to the subscriber without blocking.

        Raises:
            ChannelUnavailableException: If the subscriber is gone.
        """
        ...


class EventJournal(Protocol):
    """Optional durable mirror of every published event."""

    async def append(self, event: RelayEvent) -> Optional[str]:
        ...


class EventFanout:
    """
    Per-device publish/subscribe hub.

    Delivery is best-effort with no acknowledgment or retry. Each call to
    `deliver` on a subscriber happens synchronously in publish order, which
    keeps per-device emission order intact for every observer.
    """

    def __init__(self, journal: Optional[EventJournal] = None):
        """
        Initialize the fan-out hub.

        Args:
            journal: Optional journal that receives a copy of every event.
        """
        self._rooms: Dict[str, Set[EventSubscriber]] = {}
        self._journal = journal

        # Statistics
        self._published = 0
        self._delivered = 0
        self._dropped_subscribers = 0

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, device_id: str, subscriber: EventSubscriber) -> None:
        """Add a subscriber to a device's room."""
        self._rooms.setdefault(device_id, set()).add(subscriber)
        logger.debug(f"Subscriber joined room for device {device_id}")

    def unsubscribe(self, device_id: str, subscriber: EventSubscriber) -> None:
        """Remove a subscriber from a device's room."""
        room = self._rooms.get(device_id)
        if room is None:
            return
        room.discard(subscriber)
        if not room:
            del self._rooms[device_id]

    def unsubscribe_all(self, subscriber: EventSubscriber) -> int:
        """
        Remove a subscriber from every room.

        Returns:
            Number of rooms the subscriber was removed from.
        """
        removed = 0
        for device_id in list(self._rooms):
            room = self._rooms[device_id]
            if subscriber in room:
                room.discard(subscriber)
                removed += 1
                if not room:
                    del self._rooms[device_id]
        return removed

    def drop_room(self, device_id: str) -> None:
        """Forget every subscription to a device (device deleted)."""
        self._rooms.pop(device_id, None)

    def subscribers(self, device_id: str) -> Set[EventSubscriber]:
        """Current subscribers of a device (copy)."""
        return set(self._rooms.get(device_id, ()))

    # =========================================================================
    # Publishing
    # =========================================================================

    async def publish(self, event: RelayEvent) -> int:
        """
        Deliver an event to every subscriber of its device.

        Subscribers are served before anything is awaited, so callers that
        mutate state and publish without awaiting in between get atomic
        state-plus-notification behaviour.

        Args:
            event: Event to broadcast.

        Returns:
            Number of subscribers the event was handed to.
        """
        delivered = self._deliver(event)

        if self._journal is not None:
            try:
                await self._journal.append(event)
            except Exception as e:
                logger.warning(f"Failed to journal {event.event_type.value} for {event.device_id}: {e}")

        return delivered

    def _deliver(self, event: RelayEvent) -> int:
        self._published += 1
        room = self._rooms.get(event.device_id)
        if not room:
            return 0

        delivered = 0
        failed: List[EventSubscriber] = []
        for subscriber in list(room):
            try:
                subscriber.deliver(event)
                delivered += 1
            except ChannelUnavailableException as e:
                logger.info(f"Dropping subscriber of {event.device_id}: {e.message}")
                failed.append(subscriber)

        for subscriber in failed:
            self.unsubscribe_all(subscriber)
            self._dropped_subscribers += 1

        self._delivered += delivered
        return delivered

    async def presence_changed(
        self,
        device_id: str,
        online: bool,
        last_seen: Optional[datetime],
    ) -> int:
        return await self.publish(RelayEvent.presence_changed(device_id, online, last_seen))

    async def telemetry_recorded(
        self,
        device_id: str,
        plant_id: Optional[Any],
        reading: Dict[str, Any],
    ) -> int:
        return await self.publish(RelayEvent.telemetry_recorded(device_id, plant_id, reading))

    async def command_status_changed(
        self,
        device_id: str,
        command_id: Any,
        status: str,
    ) -> int:
        return await self.publish(RelayEvent.command_status_changed(device_id, command_id, status))

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> Dict[str, int]:
        """Get fan-out statistics."""
        return {
            "rooms": len(self._rooms),
            "subscriptions": sum(len(room) for room in self._rooms.values()),
            "events_published": self._published,
            "events_delivered": self._delivered,
            "dropped_subscribers": self._dropped_subscribers,
        }
