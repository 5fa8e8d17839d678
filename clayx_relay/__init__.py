"""
Clayx smart planter command relay.

Tracks device presence, queues actuation commands, delivers them by push
or poll and fans out telemetry and status events to observers.
"""

__version__ = "1.0.0"
