"""Tests for the sensor data repository against a temporary SQLite store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from oee_dashboard.database import Base
from oee_dashboard.models.oee import MachineStatus
from oee_dashboard.models.sensor_data import RecordType, SensorData
from oee_dashboard.services.sensor_data_repository import SensorDataRepository
from oee_dashboard.utils.exceptions import DatabaseError

T0 = datetime(2024, 3, 4, 6, 0, 0)


def _at(hours: float) -> datetime:
    return T0 + timedelta(hours=hours)


def _row(record_type: RecordType, hours: float, **fields) -> SensorData:
    values = dict(
        factory_id="f1",
        factory_name="Plant North",
        device_id="press-1",
        device_type="press",
        record_type=record_type.value,
        timestamp=_at(hours),
    )
    values.update(fields)
    return SensorData(**values)


def _seed_rows() -> list[SensorData]:
    return [
        _row(RecordType.MACHINE_STATUS, 2, status="error"),
        _row(RecordType.MACHINE_STATUS, 0, status="running"),
        _row(RecordType.MACHINE_STATUS, 1, status="RUNNING"),
        _row(RecordType.MACHINE_STATUS, 3, status="warming_up"),
        _row(RecordType.MACHINE_STATUS, 30, status="idle"),
        _row(RecordType.MACHINE_STATUS, 1, status="stopped", device_id="press-2"),
        _row(RecordType.MACHINE_STATUS, 1, status="setup", factory_id="f2", factory_name=None, device_id="lathe-1",
             device_type="lathe"),
        _row(RecordType.PRODUCTION, 0.5, interval_count=120, efficiency=88.5),
        _row(RecordType.PRODUCTION, 1.5, interval_count=None, efficiency=None),
        _row(RecordType.QUALITY_CHECK, 1, defect_rate=0.02),
        _row(RecordType.QUALITY_CHECK, 2.5, defect_rate=None),
    ]


def _run_with_repository(tmp_path: Path, scenario, *, create_schema: bool = True):
    async def runner():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sensor_data.db'}")
        try:
            if create_schema:
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            session_factory = async_sessionmaker(engine, expire_on_commit=False)
            if create_schema:
                async with session_factory() as session:
                    session.add_all(_seed_rows())
                    await session.commit()
            return await scenario(SensorDataRepository(session_factory))
        finally:
            await engine.dispose()

    return asyncio.run(runner())


def test_machine_status_is_scoped_sorted_and_window_inclusive(tmp_path: Path) -> None:
    async def scenario(repository: SensorDataRepository):
        return await repository.get_machine_status_data("f1", "press-1", _at(0), _at(3))

    records = _run_with_repository(tmp_path, scenario)

    assert [record.timestamp for record in records] == [_at(0), _at(1), _at(2), _at(3)]
    assert [record.status for record in records] == [
        MachineStatus.RUNNING,
        MachineStatus.RUNNING,
        MachineStatus.ERROR,
        MachineStatus.UNKNOWN,
    ]


def test_production_nulls_read_as_zero(tmp_path: Path) -> None:
    async def scenario(repository: SensorDataRepository):
        return await repository.get_production_data("f1", "press-1", _at(0), _at(24))

    records = _run_with_repository(tmp_path, scenario)

    assert [(record.interval_count, record.efficiency) for record in records] == [(120, 88.5), (0, 0)]


def test_quality_records(tmp_path: Path) -> None:
    async def scenario(repository: SensorDataRepository):
        return await repository.get_quality_data("f1", "press-1", _at(0), _at(2))

    records = _run_with_repository(tmp_path, scenario)

    assert len(records) == 1
    assert records[0].defect_rate == pytest.approx(0.02)


def test_no_matching_records_returns_empty_list(tmp_path: Path) -> None:
    async def scenario(repository: SensorDataRepository):
        return await repository.get_machine_status_data("f1", "missing-device", _at(0), _at(24))

    assert _run_with_repository(tmp_path, scenario) == []


def test_factories_and_devices(tmp_path: Path) -> None:
    async def scenario(repository: SensorDataRepository):
        return await repository.get_factories(), await repository.get_devices_for_factory("f1")

    factories, devices = _run_with_repository(tmp_path, scenario)

    assert [(factory.id, factory.name) for factory in factories] == [("f1", "Plant North"), ("f2", "Factory f2")]
    assert [(device.id, device.type) for device in devices] == [("press-1", "press"), ("press-2", "press")]


def test_store_failure_raises_database_error(tmp_path: Path) -> None:
    async def scenario(repository: SensorDataRepository):
        return await repository.get_machine_status_data("f1", "press-1", _at(0), _at(24))

    with pytest.raises(DatabaseError) as excinfo:
        _run_with_repository(tmp_path, scenario, create_schema=False)

    assert excinfo.value.error_code == "DATABASE_ERROR"
    assert excinfo.value.status_code == 503
