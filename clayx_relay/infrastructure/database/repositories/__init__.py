"""
SQLAlchemy repositories.
"""
from .command_repository import SQLAlchemyCommandRepository
from .device_repository import SQLAlchemyDeviceRepository
from .reading_repository import SQLAlchemyReadingRepository

__all__ = [
    "SQLAlchemyCommandRepository",
    "SQLAlchemyDeviceRepository",
    "SQLAlchemyReadingRepository",
]
