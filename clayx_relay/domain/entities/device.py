"""
Device domain entities.

Device metadata is owned by the platform; the relay only needs identity,
ownership and presence.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from .base import Entity, utc_now


@dataclass
class Device(Entity):
    """
    A registered planter controller.

    `device_id` is the opaque identifier the controller presents on both
    channels; `id` is the internal key commands and readings reference.
    """
    device_id: str = ""
    owner_id: Optional[UUID] = None
    is_online: bool = False
    last_seen: Optional[datetime] = None

    def is_owned_by(self, user_id: Optional[UUID]) -> bool:
        return user_id is not None and self.owner_id == user_id


@dataclass
class PresenceRecord:
    """
    In-memory presence for one device.

    The channel handle is only set while a persistent connection is open.
    `session_token` identifies the connection that registered the handle.
    """
    device_id: str
    online: bool = False
    last_seen: Optional[datetime] = None
    channel: Optional[Any] = None
    session_token: Optional[int] = None
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_reachable(self) -> bool:
        return self.online and self.channel is not None

    def copy(self) -> "PresenceRecord":
        return PresenceRecord(
            device_id=self.device_id,
            online=self.online,
            last_seen=self.last_seen,
            channel=self.channel,
            session_token=self.session_token,
            updated_at=self.updated_at,
        )
