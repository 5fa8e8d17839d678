"""
Redis Streams journal for relay events.

Mirrors every fanned-out event into a capped stream so that downstream
consumers (analytics, audit) can replay device activity.
"""
import json
import logging
from typing import Optional

import redis.asyncio as redis

from ...config import RedisSettings
from ...domain.entities.event import RelayEvent

logger = logging.getLogger(__name__)


def create_redis_client(settings: RedisSettings) -> redis.Redis:
    """Create the Redis client used by the journal."""
    return redis.from_url(
        settings.url,
        encoding="utf-8",
        decode_responses=True,
    )


class RedisEventJournal:
    """
    Produces relay events to a Redis stream.
    """

    def __init__(self, client: redis.Redis, stream_name: str, max_len: int = 100000):
        self._client = client
        self.stream_name = stream_name
        self.max_len = max_len

    async def append(self, event: RelayEvent) -> Optional[str]:
        """
        Add an event to the stream.

        Returns:
            Generated message ID
        """
        fields = {
            "event": event.event_type.value,
            "device_id": event.device_id,
            "time": event.time.isoformat(),
            "data": json.dumps(event.data, default=str),
        }

        return await self._client.xadd(
            self.stream_name,
            fields,
            maxlen=self.max_len,
            approximate=True,
        )

    async def close(self) -> None:
        """Close Redis connection."""
        await self._client.aclose()
