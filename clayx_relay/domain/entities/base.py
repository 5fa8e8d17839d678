"""
Base domain classes for the relay.
"""
from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


@dataclass
class Entity(ABC):
    """Base class for all entities with identity."""
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
