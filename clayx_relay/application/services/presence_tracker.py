"""
Presence Tracker.

Keeps the authoritative in-memory online/last-seen state for every device
plus the handle of its current persistent channel. Presence is written
through to the device table so that device metadata reflects it, but
routing decisions only ever read the in-memory record.
"""
import itertools
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..interfaces.unit_of_work import UnitOfWork
from ...domain.entities.base import utc_now
from ...domain.entities.device import PresenceRecord
from .event_fanout import EventFanout
from .keyed_lock import KeyedLock

logger = logging.getLogger(__name__)


class PresenceWriter:
    """Persists presence changes to the device table."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]):
        self._uow_factory = uow_factory

    async def write(
        self,
        device_id: str,
        is_online: Optional[bool],
        last_seen: Optional[datetime],
    ) -> None:
        async with self._uow_factory() as uow:
            await uow.devices.update_presence(device_id, is_online, last_seen)
            await uow.commit()


class PresenceTracker:
    """
    Online/offline/last-seen state per device.

    Every persistent connection that registers itself receives a session
    token drawn from a process-wide monotonic counter. Only the holder of
    the current token may take the device offline, so a late close from a
    superseded connection cannot clobber the newer session.
    """

    def __init__(
        self,
        fanout: EventFanout,
        writer: Optional[PresenceWriter] = None,
    ):
        """
        Initialize the tracker.

        Args:
            fanout: Hub receiving presence_changed events.
            writer: Optional write-through to persistent storage.
        """
        self._fanout = fanout
        self._writer = writer
        self._records: Dict[str, PresenceRecord] = {}
        self._tokens = itertools.count(1)
        self._locks = KeyedLock()

    # =========================================================================
    # Mutations
    # =========================================================================

    async def mark_online(self, device_id: str, channel: Optional[Any] = None) -> Optional[int]:
        """
        Mark a device online.

        Args:
            device_id: Opaque device identifier.
            channel: Handle of a newly opened persistent channel. When given it
                replaces the current handle and the previous one becomes stale.

        Returns:
            The new session token when a channel was registered, else None.
        """
        record = self._record(device_id)
        now = utc_now()
        record.online = True
        record.last_seen = now
        record.updated_at = now

        token = None
        if channel is not None:
            token = next(self._tokens)
            if record.channel is not None and record.channel is not channel:
                logger.info(f"Device {device_id} reconnected, superseding session {record.session_token}")
            record.channel = channel
            record.session_token = token

        await self._fanout.presence_changed(device_id, True, now)
        await self._write_through(device_id)
        return token

    async def mark_offline(self, device_id: str, session_token: Optional[int] = None) -> bool:
        """
        Mark a device offline.

        Args:
            device_id: Opaque device identifier.
            session_token: Token of the closing connection. When given, the call
                only applies if it is still the current session; when omitted
                the device is taken offline unconditionally.

        Returns:
            True if the device was taken offline.
        """
        record = self._records.get(device_id)
        if session_token is not None:
            if record is None or record.session_token != session_token:
                logger.debug(f"Ignoring offline for {device_id} from stale session {session_token}")
                return False
        if record is None:
            record = self._record(device_id)

        record.online = False
        record.channel = None
        record.session_token = None
        record.updated_at = utc_now()

        await self._fanout.presence_changed(device_id, False, record.last_seen)
        await self._write_through(device_id)
        return True

    async def touch(self, device_id: str) -> None:
        """Record activity without changing the online flag."""
        record = self._record(device_id)
        now = utc_now()
        record.last_seen = now
        record.updated_at = now
        await self._write_through(device_id)

    def forget(self, device_id: str) -> Optional[PresenceRecord]:
        """Drop a device's record (device deleted). Returns the dropped record."""
        return self._records.pop(device_id, None)

    # =========================================================================
    # Reads
    # =========================================================================

    def is_reachable(self, device_id: str) -> bool:
        record = self._records.get(device_id)
        return record is not None and record.is_reachable

    def channel_handle(self, device_id: str) -> Optional[Any]:
        record = self._records.get(device_id)
        if record is None or not record.is_reachable:
            return None
        return record.channel

    def session_token(self, device_id: str) -> Optional[int]:
        record = self._records.get(device_id)
        return record.session_token if record else None

    def snapshot(self, device_id: str) -> Optional[PresenceRecord]:
        """Copy of a device's record, or None if it was never seen."""
        record = self._records.get(device_id)
        return record.copy() if record else None

    def online_count(self) -> int:
        return sum(1 for record in self._records.values() if record.online)

    # =========================================================================
    # Internal
    # =========================================================================

    def _record(self, device_id: str) -> PresenceRecord:
        record = self._records.get(device_id)
        if record is None:
            record = PresenceRecord(device_id=device_id)
            self._records[device_id] = record
        return record

    async def _write_through(self, device_id: str) -> None:
        """
        Persist the current record under the device's lock.

        The record is read inside the lock, so the last write for a device
        always carries its latest state regardless of completion order.
        """
        if self._writer is None:
            return

        async with self._locks.hold(device_id):
            record = self._records.get(device_id)
            if record is None:
                return
            try:
                await self._writer.write(device_id, record.online, record.last_seen)
            except Exception as e:
                logger.warning(f"Presence write-through failed for {device_id}: {e}")
