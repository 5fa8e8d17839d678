"""
Test data factories using factory_boy.

Provides realistic test data for relay entities.
"""
from .command_factory import (
    CommandFactory,
    PendingCommandFactory,
    ExecutedCommandFactory,
    FailedCommandFactory,
)
from .device_factory import DeviceFactory, SensorReportFactory

__all__ = [
    "CommandFactory",
    "PendingCommandFactory",
    "ExecutedCommandFactory",
    "FailedCommandFactory",
    "DeviceFactory",
    "SensorReportFactory",
]
