"""
OEE Dashboard - OEE Analytics Service

This module serves the OEE summary, waterfall, timeline and stop cause views
for one device. It validates the requested window, fetches the raw records
through the sensor data repository and runs the OEE calculation engine on
them. Nothing is cached; every call recomputes from raw records.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional, Tuple
import structlog

from oee_dashboard.config import settings
from oee_dashboard.models.oee import (
    DeviceResponse,
    FactoryResponse,
    OEESummaryResponse,
    OEETimelineResponse,
    OEEWaterfallResponse,
    PeriodInfo,
    ProductionRecord,
    QualityRecord,
    StatusRecord,
    StopCausesResponse,
    TimelineInterval,
    TimeWindow,
)
from oee_dashboard.monitoring.metrics import track_view
from oee_dashboard.services.oee_calculator import OEECalculator
from oee_dashboard.services.sensor_data_repository import SensorDataRepository
from oee_dashboard.services.stop_tracker import StopTracker
from oee_dashboard.services.timeline import TimelineAggregator, count_periods, partition_periods
from oee_dashboard.utils.exceptions import ValidationError
from oee_dashboard.utils.time_utils import parse_instant, to_utc_naive

logger = structlog.get_logger()


class OEEAnalyticsService:
    """OEE views for a single device."""

    def __init__(
        self,
        repository: SensorDataRepository,
        default_efficiency: Optional[float] = None,
        max_timeline_periods: Optional[int] = None
    ):
        self.repository = repository
        self.default_efficiency = (
            settings.DEFAULT_EFFICIENCY_PERCENT if default_efficiency is None else default_efficiency
        )
        self.max_timeline_periods = max_timeline_periods or settings.MAX_TIMELINE_PERIODS
        self.stop_tracker = StopTracker()
        self.timeline_aggregator = TimelineAggregator(default_efficiency=self.default_efficiency)

    @staticmethod
    def resolve_window(start_date: Optional[datetime], end_date: Optional[datetime]) -> TimeWindow:
        """
        Build the calculation window, defaulting start to the configured
        start date and end to now.

        Raises:
            ValidationError: if end is not after start
        """
        start = to_utc_naive(start_date) or parse_instant(settings.DEFAULT_START_DATE)
        end = to_utc_naive(end_date) or to_utc_naive(datetime.now(timezone.utc))

        if end <= start:
            raise ValidationError(
                "End date must be after start date",
                {"startDate": start.isoformat(), "endDate": end.isoformat()}
            )

        return TimeWindow(start=start, end=end)

    async def get_summary(
        self,
        factory_id: str,
        device_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> OEESummaryResponse:
        """Get OEE time buckets and ratios for the whole window."""
        with track_view("summary"):
            self._validate_ids(factory_id, device_id)
            window = self.resolve_window(start_date, end_date)
            status_records, production_records, quality_records = await self._fetch_records(
                factory_id, device_id, window
            )

            metrics = OEECalculator.calculate_metrics(
                status_records,
                production_records,
                quality_records,
                window.total_hours,
                default_efficiency=self.default_efficiency
            )

            logger.info(
                "OEE summary calculated",
                factory_id=factory_id,
                device_id=device_id,
                data_available=metrics.data_available,
                oee1=metrics.oee1,
                tcu=metrics.tcu
            )

            return OEESummaryResponse(
                factory_id=factory_id,
                device_id=device_id,
                period=PeriodInfo(start=window.start, end=window.end, total_hours=window.total_hours),
                metrics=metrics
            )

    async def get_waterfall(
        self,
        factory_id: str,
        device_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> OEEWaterfallResponse:
        """Get the waterfall bridge from total equipment time to value-operating time."""
        with track_view("waterfall"):
            self._validate_ids(factory_id, device_id)
            window = self.resolve_window(start_date, end_date)
            status_records, production_records, quality_records = await self._fetch_records(
                factory_id, device_id, window
            )

            metrics = OEECalculator.calculate_metrics(
                status_records,
                production_records,
                quality_records,
                window.total_hours,
                default_efficiency=self.default_efficiency
            )
            waterfall_data = OEECalculator.build_waterfall(metrics.buckets) if metrics.data_available else []

            logger.info(
                "OEE waterfall calculated",
                factory_id=factory_id,
                device_id=device_id,
                data_available=metrics.data_available,
                steps=len(waterfall_data)
            )

            return OEEWaterfallResponse(
                factory_id=factory_id,
                device_id=device_id,
                period=PeriodInfo(start=window.start, end=window.end, total_hours=window.total_hours),
                data_available=metrics.data_available,
                waterfall_data=waterfall_data,
                metrics=metrics.ratios()
            )

    async def get_timeline(
        self,
        factory_id: str,
        device_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        interval: Optional[str] = None
    ) -> OEETimelineResponse:
        """Get OEE ratios per hourly, daily or weekly period."""
        with track_view("timeline"):
            self._validate_ids(factory_id, device_id)
            window = self.resolve_window(start_date, end_date)
            timeline_interval = TimelineInterval.parse(interval or settings.DEFAULT_TIMELINE_INTERVAL)

            period_count = count_periods(window.start, window.end, timeline_interval)
            if period_count > self.max_timeline_periods:
                raise ValidationError(
                    "Too many timeline periods for the requested window; pass a later startDate or a coarser interval",
                    {
                        "periods": period_count,
                        "maxPeriods": self.max_timeline_periods,
                        "interval": timeline_interval.value,
                        "startDate": window.start.isoformat()
                    }
                )

            status_records, production_records, quality_records = await self._fetch_records(
                factory_id, device_id, window
            )
            periods = partition_periods(window.start, window.end, timeline_interval)
            timeline = self.timeline_aggregator.aggregate(
                status_records, production_records, quality_records, periods
            )

            logger.info(
                "OEE timeline calculated",
                factory_id=factory_id,
                device_id=device_id,
                interval=timeline_interval.value,
                periods=len(periods)
            )

            return OEETimelineResponse(
                factory_id=factory_id,
                device_id=device_id,
                period=PeriodInfo(start=window.start, end=window.end, interval=timeline_interval),
                timeline=timeline
            )

    async def get_stop_causes(
        self,
        factory_id: str,
        device_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> StopCausesResponse:
        """Get stop events grouped by loss category."""
        with track_view("stops"):
            self._validate_ids(factory_id, device_id)
            window = self.resolve_window(start_date, end_date)
            status_records = await self.repository.get_machine_status_data(
                factory_id, device_id, window.start, window.end
            )

            stops = self.stop_tracker.segment_stops(status_records)

            logger.info(
                "Stop causes calculated",
                factory_id=factory_id,
                device_id=device_id,
                stops=len(stops)
            )

            return StopCausesResponse(
                factory_id=factory_id,
                device_id=device_id,
                period=PeriodInfo(start=window.start, end=window.end, total_hours=window.total_hours),
                stops_by_category=self.stop_tracker.group_by_category(stops),
                summary=self.stop_tracker.summarize(stops)
            )

    async def get_factories(self) -> List[FactoryResponse]:
        """Get all factories with sensor data."""
        return await self.repository.get_factories()

    async def get_devices(self, factory_id: Optional[str]) -> List[DeviceResponse]:
        """Get devices for a factory."""
        if not factory_id or not factory_id.strip():
            raise ValidationError("Factory ID is required")
        return await self.repository.get_devices_for_factory(factory_id)

    async def _fetch_records(
        self,
        factory_id: str,
        device_id: str,
        window: TimeWindow
    ) -> Tuple[List[StatusRecord], List[ProductionRecord], List[QualityRecord]]:
        status_records, production_records, quality_records = await asyncio.gather(
            self.repository.get_machine_status_data(factory_id, device_id, window.start, window.end),
            self.repository.get_production_data(factory_id, device_id, window.start, window.end),
            self.repository.get_quality_data(factory_id, device_id, window.start, window.end)
        )

        logger.debug(
            "Records fetched",
            factory_id=factory_id,
            device_id=device_id,
            status_records=len(status_records),
            production_records=len(production_records),
            quality_records=len(quality_records)
        )

        return status_records, production_records, quality_records

    @staticmethod
    def _validate_ids(factory_id: Optional[str], device_id: Optional[str]) -> None:
        if not factory_id or not factory_id.strip() or not device_id or not device_id.strip():
            raise ValidationError(
                "Factory ID and Device ID are required",
                {"factoryId": factory_id, "deviceId": device_id}
            )
