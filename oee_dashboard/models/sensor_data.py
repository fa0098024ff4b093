"""
OEE Dashboard - Sensor Data ORM Model

All record kinds share one table and are told apart by ``record_type``.
"""

from datetime import datetime
from typing import Optional
from enum import Enum

from sqlalchemy import DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from oee_dashboard.database import Base


class RecordType(str, Enum):
    """Sensor data record type tag."""
    MACHINE_STATUS = "machine_status"
    PRODUCTION = "production"
    QUALITY_CHECK = "quality_check"


class SensorData(Base):
    """Sensor data row written by the IoT generator."""

    __tablename__ = "sensor_data"
    __table_args__ = (
        Index("ix_sensor_data_lookup", "factory_id", "device_id", "record_type", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    factory_id: Mapped[str] = mapped_column(String(64), nullable=False)
    factory_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    device_id: Mapped[str] = mapped_column(String(64), nullable=False)
    device_type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    record_type: Mapped[str] = mapped_column(String(32), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # machine_status
    status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    # production
    interval_count: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    efficiency: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # quality_check
    defect_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
