"""
Messaging infrastructure.
"""
from .event_journal import RedisEventJournal, create_redis_client

__all__ = ["RedisEventJournal", "create_redis_client"]
