"""
OEE Dashboard - Sensor Data Repository

This module fetches typed machine status, production and quality records for
one device and time window from the sensor data store. Results are sorted by
timestamp and restricted to start <= timestamp <= end; an empty list means no
data. Store failures raise DatabaseError and are never replaced by sample data.
"""

from datetime import datetime
from typing import List
import structlog

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from oee_dashboard.models.oee import (
    DeviceResponse,
    FactoryResponse,
    ProductionRecord,
    QualityRecord,
    StatusRecord,
)
from oee_dashboard.models.sensor_data import RecordType, SensorData
from oee_dashboard.utils.exceptions import DatabaseError, handle_database_exception

logger = structlog.get_logger()


class SensorDataRepository:
    """Read access to the sensor data store."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def get_factories(self) -> List[FactoryResponse]:
        """Get all factories, naming unnamed ones after their ID."""
        stmt = (
            select(SensorData.factory_id, func.max(SensorData.factory_name).label("factory_name"))
            .group_by(SensorData.factory_id)
            .order_by(SensorData.factory_id)
        )
        rows = await self._execute(stmt, "factories")

        return [
            FactoryResponse(id=row.factory_id, name=row.factory_name or f"Factory {row.factory_id}")
            for row in rows
        ]

    async def get_devices_for_factory(self, factory_id: str) -> List[DeviceResponse]:
        """Get all devices reporting for a factory."""
        stmt = (
            select(SensorData.device_id, func.max(SensorData.device_type).label("device_type"))
            .where(SensorData.factory_id == factory_id)
            .group_by(SensorData.device_id)
            .order_by(SensorData.device_id)
        )
        rows = await self._execute(stmt, "devices", factory_id=factory_id)

        return [DeviceResponse(id=row.device_id, type=row.device_type) for row in rows]

    async def get_machine_status_data(
        self,
        factory_id: str,
        device_id: str,
        start: datetime,
        end: datetime
    ) -> List[StatusRecord]:
        """Get machine status records for a device in a time range."""
        stmt = self._window_query(
            (SensorData.timestamp, SensorData.status),
            RecordType.MACHINE_STATUS, factory_id, device_id, start, end
        )
        rows = await self._execute(stmt, "machine_status", factory_id=factory_id, device_id=device_id)

        return self._to_records(
            rows,
            lambda row: StatusRecord(timestamp=row.timestamp, status=row.status)
        )

    async def get_production_data(
        self,
        factory_id: str,
        device_id: str,
        start: datetime,
        end: datetime
    ) -> List[ProductionRecord]:
        """Get production records for a device in a time range."""
        stmt = self._window_query(
            (SensorData.timestamp, SensorData.interval_count, SensorData.efficiency),
            RecordType.PRODUCTION, factory_id, device_id, start, end
        )
        rows = await self._execute(stmt, "production", factory_id=factory_id, device_id=device_id)

        return self._to_records(
            rows,
            lambda row: ProductionRecord(
                timestamp=row.timestamp,
                interval_count=row.interval_count or 0,
                efficiency=row.efficiency or 0
            )
        )

    async def get_quality_data(
        self,
        factory_id: str,
        device_id: str,
        start: datetime,
        end: datetime
    ) -> List[QualityRecord]:
        """Get quality check records for a device in a time range."""
        stmt = self._window_query(
            (SensorData.timestamp, SensorData.defect_rate),
            RecordType.QUALITY_CHECK, factory_id, device_id, start, end
        )
        rows = await self._execute(stmt, "quality_check", factory_id=factory_id, device_id=device_id)

        return self._to_records(
            rows,
            lambda row: QualityRecord(timestamp=row.timestamp, defect_rate=row.defect_rate or 0)
        )

    @staticmethod
    def _window_query(columns, record_type: RecordType, factory_id: str, device_id: str,
                      start: datetime, end: datetime):
        return (
            select(*columns)
            .where(
                SensorData.factory_id == factory_id,
                SensorData.device_id == device_id,
                SensorData.record_type == record_type.value,
                SensorData.timestamp >= start,
                SensorData.timestamp <= end
            )
            .order_by(SensorData.timestamp, SensorData.id)
        )

    async def _execute(self, stmt, query_name: str, **context) -> list:
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return result.all()
        except SQLAlchemyError as e:
            logger.error("Sensor data query failed", query=query_name, error=str(e), **context)
            raise handle_database_exception(e) from e

    @staticmethod
    def _to_records(rows, factory) -> list:
        try:
            return [factory(row) for row in rows]
        except PydanticValidationError as e:
            logger.error("Invalid sensor data record", error=str(e))
            raise DatabaseError("Invalid sensor data record", {"original_error": str(e)}) from e
