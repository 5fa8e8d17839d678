"""
Application interfaces (ports).
"""
from .repositories import CommandRepository, DeviceRepository, ReadingRepository
from .unit_of_work import UnitOfWork

__all__ = [
    "CommandRepository",
    "DeviceRepository",
    "ReadingRepository",
    "UnitOfWork",
]
