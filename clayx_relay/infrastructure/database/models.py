"""
SQLAlchemy models for devices, plants, commands and sensor readings.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Identity,
    Index,
    String,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from .connection import Base
from ...domain.entities.base import utc_now
from ...domain.entities.command import CommandStatus, DeviceCommand
from ...domain.entities.device import Device
from ...domain.entities.telemetry import SensorReading


class DeviceModel(Base):
    """
    Registered planter controllers.

    Rows are created by the platform at registration; the relay only
    writes the presence columns and deletes rows on device deletion.
    """
    __tablename__ = "devices"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    device_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    owner_id: Mapped[Optional[UUID]] = mapped_column(PGUUID(as_uuid=True), nullable=True, index=True)

    # Presence
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_seen: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    def to_domain(self) -> Device:
        """Convert ORM model to domain entity."""
        return Device(
            id=self.id,
            device_id=self.device_id,
            owner_id=self.owner_id,
            is_online=self.is_online,
            last_seen=self.last_seen,
            created_at=self.created_at,
        )


class PlantModel(Base):
    """Plants; read here only to attribute readings and check ownership."""
    __tablename__ = "plants"

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    device_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("devices.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    owner_id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)


class DeviceCommandModel(Base):
    """
    Durable command queue.

    `sequence` is an identity column giving insertion order, used to break
    ties between commands created in the same instant.
    """
    __tablename__ = "device_commands"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True, default=uuid4)
    sequence: Mapped[int] = mapped_column(BigInteger, Identity(always=False), nullable=False, unique=True)
    device_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
    )

    command_type: Mapped[str] = mapped_column(String(50), nullable=False)
    command_value: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CommandStatus.PENDING.value)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)
    executed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[Optional[UUID]] = mapped_column(PGUUID(as_uuid=True), nullable=True)

    __table_args__ = (
        Index("ix_device_commands_device_status", "device_id", "status", "created_at"),
    )

    def to_domain(self, device_ref: str = "") -> DeviceCommand:
        """Convert ORM model to domain entity."""
        return DeviceCommand(
            id=self.id,
            device_id=self.device_id,
            device_ref=device_ref,
            command_type=self.command_type,
            command_value=self.command_value,
            status=CommandStatus(self.status),
            created_at=self.created_at,
            executed_at=self.executed_at,
            updated_at=self.executed_at,
            sequence=self.sequence,
            created_by=self.created_by,
        )


class SensorReadingModel(Base):
    """Append-only sensor reading log."""
    __tablename__ = "sensor_readings"

    id: Mapped[int] = mapped_column(BigInteger, Identity(always=False), primary_key=True)
    device_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
    )
    plant_id: Mapped[Optional[UUID]] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("plants.id", ondelete="SET NULL"),
        nullable=True,
    )

    temperature: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    humidity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    soil_moisture: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    water_level: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    light_level: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_sensor_readings_plant_time", "plant_id", "timestamp"),
    )

    def to_domain(self) -> SensorReading:
        """Convert ORM model to domain entity."""
        return SensorReading(
            id=self.id,
            device_id=self.device_id,
            plant_id=self.plant_id,
            temperature=self.temperature,
            humidity=self.humidity,
            soil_moisture=self.soil_moisture,
            water_level=self.water_level,
            light_level=self.light_level,
            timestamp=self.timestamp,
        )
