"""Tests for the OEE analytics service over an in-memory repository."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from oee_dashboard.models.oee import (
    DeviceResponse,
    FactoryResponse,
    ProductionRecord,
    QualityRecord,
    StatusRecord,
    StopCategory,
    TimelineInterval,
    WaterfallStepKind,
)
from oee_dashboard.services.oee_analytics_service import OEEAnalyticsService
from oee_dashboard.utils.exceptions import DatabaseError, ValidationError

T0 = datetime(2024, 3, 4, 0, 0, 0)


def _at(hours: float) -> datetime:
    return T0 + timedelta(hours=hours)


class _InMemoryRepository:
    """Repository double returning fixed records filtered by window."""

    def __init__(self, status=(), production=(), quality=(), fail_with: Exception | None = None) -> None:
        self.status = list(status)
        self.production = list(production)
        self.quality = list(quality)
        self.fail_with = fail_with
        self.windows: list[tuple[datetime, datetime]] = []

    def _window(self, records, start, end):
        if self.fail_with is not None:
            raise self.fail_with
        self.windows.append((start, end))
        return [record for record in records if start <= record.timestamp <= end]

    async def get_machine_status_data(self, factory_id, device_id, start, end):
        return self._window(self.status, start, end)

    async def get_production_data(self, factory_id, device_id, start, end):
        return self._window(self.production, start, end)

    async def get_quality_data(self, factory_id, device_id, start, end):
        return self._window(self.quality, start, end)

    async def get_factories(self):
        return [FactoryResponse(id="f1", name="Plant North")]

    async def get_devices_for_factory(self, factory_id):
        return [DeviceResponse(id="press-1", type="press")]


def _shift_repository() -> _InMemoryRepository:
    status = [
        StatusRecord(timestamp=_at(offset), status=status)
        for offset, status in [(0, "running"), (4, "error"), (5, "setup"), (6, "running"), (8, "stopped")]
    ]
    production = [ProductionRecord(timestamp=_at(1), interval_count=100, efficiency=90)]
    quality = [QualityRecord(timestamp=_at(2), defect_rate=0.1)]
    return _InMemoryRepository(status, production, quality)


def test_summary_reports_buckets_and_ratios() -> None:
    service = OEEAnalyticsService(_shift_repository())

    response = asyncio.run(service.get_summary("f1", "press-1", T0, _at(8)))

    metrics = response.metrics
    assert response.period.total_hours == pytest.approx(8.0)
    assert metrics.data_available is True
    assert metrics.buckets.running_time == pytest.approx(6.0)
    assert metrics.buckets.operating_time == pytest.approx(7.0)
    assert metrics.buckets.production_time == pytest.approx(8.0)
    assert metrics.buckets.value_operating_time == pytest.approx(6.0 * 0.9 * 0.9)
    assert metrics.tcu == pytest.approx(6.0 * 0.9 * 0.9 / 8.0 * 100)


def test_summary_without_status_data_is_unavailable() -> None:
    service = OEEAnalyticsService(_InMemoryRepository())

    response = asyncio.run(service.get_summary("f1", "press-1", T0, _at(8)))

    assert response.metrics.data_available is False
    assert response.metrics.buckets is None
    assert response.metrics.oee1 is None


def test_timezone_aware_window_is_normalised_to_utc() -> None:
    repository = _shift_repository()
    service = OEEAnalyticsService(repository)
    start = datetime(2024, 3, 4, 2, 0, 0, tzinfo=timezone(timedelta(hours=2)))

    response = asyncio.run(service.get_summary("f1", "press-1", start, _at(8)))

    assert response.period.start == T0
    assert repository.windows[0] == (T0, _at(8))


@pytest.mark.parametrize(("factory_id", "device_id"), [("", "press-1"), ("f1", ""), ("  ", "press-1")])
def test_missing_ids_are_rejected(factory_id: str, device_id: str) -> None:
    service = OEEAnalyticsService(_shift_repository())

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.get_summary(factory_id, device_id, T0, _at(8)))

    assert excinfo.value.message == "Factory ID and Device ID are required"


@pytest.mark.parametrize("end_offset_hours", [0, -1])
def test_window_must_end_after_start(end_offset_hours: float) -> None:
    service = OEEAnalyticsService(_shift_repository())

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.get_waterfall("f1", "press-1", T0, _at(end_offset_hours)))

    assert excinfo.value.status_code == 400


def test_resolve_window_defaults() -> None:
    window = OEEAnalyticsService.resolve_window(None, None)

    assert window.start == datetime(2023, 1, 1, 0, 0, 0)
    assert window.end.tzinfo is None
    assert window.end > window.start


def test_waterfall_with_data() -> None:
    service = OEEAnalyticsService(_shift_repository())

    response = asyncio.run(service.get_waterfall("f1", "press-1", T0, _at(8)))

    assert response.data_available is True
    assert len(response.waterfall_data) == 9
    assert response.waterfall_data[0].value == pytest.approx(8.0)
    assert response.waterfall_data[-1].kind == WaterfallStepKind.LEVEL
    assert response.waterfall_data[-1].cumulative == pytest.approx(6.0 * 0.9 * 0.9)
    assert response.metrics.oee1 == pytest.approx(6.0 * 0.9 * 0.9 / 7.0 * 100)


def test_waterfall_without_data_is_empty() -> None:
    service = OEEAnalyticsService(_InMemoryRepository())

    response = asyncio.run(service.get_waterfall("f1", "press-1", T0, _at(8)))

    assert response.data_available is False
    assert response.waterfall_data == []
    assert response.metrics is None


def test_timeline_defaults_to_daily_periods() -> None:
    service = OEEAnalyticsService(_shift_repository())

    response = asyncio.run(service.get_timeline("f1", "press-1", T0, _at(72)))

    assert response.period.interval == TimelineInterval.DAILY
    assert [point.timestamp for point in response.timeline] == [T0, _at(24), _at(48)]
    assert response.timeline[0].data_available is True
    assert response.timeline[1].data_available is False


def test_timeline_hourly_points() -> None:
    service = OEEAnalyticsService(_shift_repository())

    response = asyncio.run(service.get_timeline("f1", "press-1", T0, _at(8), interval="hourly"))

    assert len(response.timeline) == 8
    assert response.timeline[-1].period_end == _at(8)


def test_timeline_rejects_too_many_periods() -> None:
    repository = _shift_repository()
    service = OEEAnalyticsService(repository, max_timeline_periods=24)

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(service.get_timeline("f1", "press-1", T0, _at(25), interval="hourly"))

    assert excinfo.value.details["periods"] == 25
    assert repository.windows == []


def test_stop_causes_grouped_by_category() -> None:
    service = OEEAnalyticsService(_shift_repository())

    response = asyncio.run(service.get_stop_causes("f1", "press-1", T0, _at(8)))

    grouped = response.stops_by_category
    assert [stop.name for stop in grouped.loss_during_operation] == ["Equipment Failure"]
    assert [stop.name for stop in grouped.batch_specific] == ["Setup/Changeover"]
    assert grouped.non_production == []
    summary = {StopCategory(item.category): item for item in response.summary}
    assert summary[StopCategory.LOSS_DURING_OPERATION].total_hours == pytest.approx(1.0)
    assert summary[StopCategory.BATCH_SPECIFIC_NON_OPERATION].events == 1


def test_database_errors_propagate() -> None:
    service = OEEAnalyticsService(_InMemoryRepository(fail_with=DatabaseError("Database is unreachable")))

    with pytest.raises(DatabaseError):
        asyncio.run(service.get_summary("f1", "press-1", T0, _at(8)))


def test_devices_require_factory_id() -> None:
    service = OEEAnalyticsService(_shift_repository())

    with pytest.raises(ValidationError):
        asyncio.run(service.get_devices(None))

    devices = asyncio.run(service.get_devices("f1"))
    assert [device.id for device in devices] == ["press-1"]
