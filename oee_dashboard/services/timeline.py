"""
OEE Dashboard - OEE Timeline Service

This module splits a window into hourly, daily or weekly periods and
recomputes OEE ratios independently for each period to build trend series.
"""

from bisect import bisect_left, bisect_right
from datetime import datetime
from typing import List, Sequence, TypeVar, Union
import structlog

from oee_dashboard.models.oee import (
    OEEMetrics,
    Period,
    ProductionRecord,
    QualityRecord,
    StatusRecord,
    TimelineInterval,
    TimelinePoint,
)
from oee_dashboard.services.oee_calculator import DEFAULT_EFFICIENCY_PERCENT, OEECalculator
from oee_dashboard.utils.time_utils import hours_between

logger = structlog.get_logger()

RecordT = TypeVar("RecordT", StatusRecord, ProductionRecord, QualityRecord)


def partition_periods(
    start: datetime,
    end: datetime,
    interval: Union[TimelineInterval, str] = TimelineInterval.DAILY
) -> List[Period]:
    """
    Split [start, end) into contiguous periods of the given interval.

    The final period is clipped to ``end`` and may be shorter than the
    interval. An empty window yields no periods.
    """
    step = TimelineInterval.parse(interval).duration
    periods: List[Period] = []
    current = start

    while current < end:
        boundary = min(current + step, end)
        periods.append(Period(start=current, end=boundary))
        current = boundary

    return periods


def count_periods(start: datetime, end: datetime, interval: Union[TimelineInterval, str]) -> int:
    """Number of periods partition_periods would produce, without building them."""
    if end <= start:
        return 0
    step = TimelineInterval.parse(interval).duration
    whole, remainder = divmod(end - start, step)
    return whole + (1 if remainder else 0)


class _TimestampIndex:
    """Sorted timestamps of a record list for period slicing."""

    def __init__(self, records: Sequence[RecordT]):
        self.records = list(records)
        self.timestamps = [record.timestamp for record in self.records]

    def between(self, start: datetime, end: datetime) -> List[RecordT]:
        """Records with start <= timestamp <= end."""
        low = bisect_left(self.timestamps, start)
        high = bisect_right(self.timestamps, end)
        return self.records[low:high]


class TimelineAggregator:
    """Per-period OEE aggregation."""

    def __init__(self, default_efficiency: float = DEFAULT_EFFICIENCY_PERCENT):
        self.default_efficiency = default_efficiency

    def calculate_period(
        self,
        period: Period,
        status_records: Sequence[StatusRecord],
        production_records: Sequence[ProductionRecord],
        quality_records: Sequence[QualityRecord]
    ) -> TimelinePoint:
        """OEE ratios for one period from records already restricted to it."""
        metrics = OEECalculator.calculate_metrics(
            status_records,
            production_records,
            quality_records,
            hours_between(period.start, period.end),
            default_efficiency=self.default_efficiency
        )
        return self._to_point(period, metrics)

    def aggregate(
        self,
        status_records: Sequence[StatusRecord],
        production_records: Sequence[ProductionRecord],
        quality_records: Sequence[QualityRecord],
        periods: Sequence[Period]
    ) -> List[TimelinePoint]:
        """
        Compute one timeline point per period, in period order.

        Each record set is re-filtered to every period (both bounds
        inclusive); records must be ordered by timestamp. No state carries
        over between periods.
        """
        status_index = _TimestampIndex(status_records)
        production_index = _TimestampIndex(production_records)
        quality_index = _TimestampIndex(quality_records)

        timeline = [
            self.calculate_period(
                period,
                status_index.between(period.start, period.end),
                production_index.between(period.start, period.end),
                quality_index.between(period.start, period.end)
            )
            for period in periods
        ]

        logger.debug(
            "OEE timeline aggregated",
            periods=len(periods),
            empty_periods=sum(1 for point in timeline if not point.data_available)
        )

        return timeline

    @staticmethod
    def _to_point(period: Period, metrics: OEEMetrics) -> TimelinePoint:
        return TimelinePoint(
            timestamp=period.start,
            period_end=period.end,
            data_available=metrics.data_available,
            oee1=metrics.oee1,
            oee2=metrics.oee2,
            oee3=metrics.oee3,
            tcu=metrics.tcu
        )
