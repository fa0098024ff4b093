"""
OEE Dashboard - OEE Calculator Service

This module provides the OEE calculation engine. Ordered machine status records
are folded into nested time buckets (manned, production, operating and
value-operating time), which yield the OEE1/OEE2/OEE3/TCU ratios and the
waterfall bridge from total equipment time down to value-operating time.
"""

from typing import Dict, List, Optional, Sequence
import structlog

from oee_dashboard.models.oee import (
    EfficiencyBasis,
    MachineStatus,
    OEEMetrics,
    OEERatios,
    ProductionRecord,
    QualityRecord,
    StatusRecord,
    TimeBuckets,
    WaterfallStep,
    WaterfallStepKind,
)
from oee_dashboard.utils.exceptions import InsufficientDataError
from oee_dashboard.utils.time_utils import hours_between

logger = structlog.get_logger()

# Applied to running time when no production records exist
DEFAULT_EFFICIENCY_PERCENT = 80.0


def _percentage(numerator: float, denominator: float) -> float:
    """Ratio in percent; zero when there is no measured time to divide by."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


class OEECalculator:
    """OEE calculation engine."""

    @staticmethod
    def accumulate_status_durations(status_records: Sequence[StatusRecord]) -> Dict[MachineStatus, float]:
        """
        Sum the hours spent in each status.

        Each record holds until the next one; the last record has no known
        end and contributes nothing.
        """
        records = list(status_records)
        durations = {status: 0.0 for status in MachineStatus}

        for current, following in zip(records, records[1:]):
            durations[MachineStatus(current.status)] += hours_between(
                current.timestamp, following.timestamp
            )

        return durations

    @staticmethod
    def calculate_time_buckets(
        status_records: Sequence[StatusRecord],
        production_records: Sequence[ProductionRecord],
        quality_records: Sequence[QualityRecord],
        total_equipment_time: float,
        default_efficiency: float = DEFAULT_EFFICIENCY_PERCENT
    ) -> TimeBuckets:
        """
        Derive the nested time buckets for one window.

        - Operating Time = running + idle + error
        - Production Time = Operating Time + setup
        - Manned Time = Production Time + maintenance
        - Value Operating Time = running x mean efficiency x (1 - mean defect rate)

        Without production records the efficiency is ``default_efficiency``
        and the buckets report an assumed efficiency basis.

        Raises:
            InsufficientDataError: if there are no status records at all
        """
        if not status_records:
            raise InsufficientDataError(
                details={"total_equipment_time": total_equipment_time}
            )

        durations = OEECalculator.accumulate_status_durations(status_records)
        running = durations[MachineStatus.RUNNING]

        operating_time = running + durations[MachineStatus.IDLE] + durations[MachineStatus.ERROR]
        production_time = operating_time + durations[MachineStatus.SETUP]
        manned_time = production_time + durations[MachineStatus.MAINTENANCE]

        if production_records:
            efficiency = sum(record.efficiency for record in production_records) / len(production_records)
            efficiency_basis = EfficiencyBasis.MEASURED
        else:
            efficiency = default_efficiency
            efficiency_basis = EfficiencyBasis.ASSUMED

        value_operating_time = running * (efficiency / 100)

        defect_rate: Optional[float] = None
        if quality_records:
            defect_rate = sum(record.defect_rate for record in quality_records) / len(quality_records)
            value_operating_time *= (1 - defect_rate)

        if value_operating_time > operating_time:
            logger.warning(
                "Value operating time exceeds operating time",
                value_operating_time=value_operating_time,
                operating_time=operating_time,
                efficiency=efficiency
            )

        return TimeBuckets(
            value_operating_time=value_operating_time,
            operating_time=operating_time,
            production_time=production_time,
            manned_time=manned_time,
            total_equipment_time=total_equipment_time,
            running_time=running,
            setup_time=durations[MachineStatus.SETUP],
            maintenance_time=durations[MachineStatus.MAINTENANCE],
            stopped_time=durations[MachineStatus.STOPPED],
            idle_time=durations[MachineStatus.IDLE],
            error_time=durations[MachineStatus.ERROR],
            efficiency_basis=efficiency_basis,
            efficiency_percent=efficiency,
            defect_rate=defect_rate
        )

    @staticmethod
    def derive_ratios(buckets: TimeBuckets) -> OEERatios:
        """Derive OEE1, OEE2, OEE3 and TCU from the time buckets."""
        value_operating_time = buckets.value_operating_time

        return OEERatios(
            oee1=_percentage(value_operating_time, buckets.operating_time),
            oee2=_percentage(value_operating_time, buckets.production_time),
            oee3=_percentage(value_operating_time, buckets.manned_time),
            tcu=_percentage(value_operating_time, buckets.total_equipment_time)
        )

    @staticmethod
    def calculate_metrics(
        status_records: Sequence[StatusRecord],
        production_records: Sequence[ProductionRecord],
        quality_records: Sequence[QualityRecord],
        total_equipment_time: float,
        default_efficiency: float = DEFAULT_EFFICIENCY_PERCENT
    ) -> OEEMetrics:
        """Time buckets and ratios for one window, or unavailable metrics without status data."""
        try:
            buckets = OEECalculator.calculate_time_buckets(
                status_records,
                production_records,
                quality_records,
                total_equipment_time,
                default_efficiency=default_efficiency
            )
        except InsufficientDataError:
            logger.debug("No status data in window", total_equipment_time=total_equipment_time)
            return OEEMetrics(data_available=False)

        ratios = OEECalculator.derive_ratios(buckets)

        logger.debug(
            "OEE metrics calculated",
            status_records=len(status_records),
            oee1=ratios.oee1,
            tcu=ratios.tcu
        )

        return OEEMetrics(
            buckets=buckets,
            oee1=ratios.oee1,
            oee2=ratios.oee2,
            oee3=ratios.oee3,
            tcu=ratios.tcu
        )

    @staticmethod
    def build_waterfall(buckets: TimeBuckets) -> List[WaterfallStep]:
        """
        Build the waterfall bridge for the time buckets.

        Levels are absolute bar heights and losses are negative deltas.
        Starting from total equipment time and adding each loss in order
        reaches every following level, ending on value-operating time.
        ``cumulative`` holds that running level after each step.
        """
        non_production = buckets.total_equipment_time - buckets.manned_time
        batch_specific = buckets.manned_time - buckets.production_time
        loss_during_operation = buckets.production_time - buckets.operating_time
        operating_loss = buckets.operating_time - buckets.value_operating_time

        definitions = [
            ("Total Equipment Time", WaterfallStepKind.LEVEL, buckets.total_equipment_time),
            ("Non-Production", WaterfallStepKind.LOSS, -non_production),
            ("Manned Time", WaterfallStepKind.LEVEL, buckets.manned_time),
            ("Batch Specific", WaterfallStepKind.LOSS, -batch_specific),
            ("Production Time", WaterfallStepKind.LEVEL, buckets.production_time),
            ("Loss During Operation", WaterfallStepKind.LOSS, -loss_during_operation),
            ("Operating Time", WaterfallStepKind.LEVEL, buckets.operating_time),
            ("Operating Loss", WaterfallStepKind.LOSS, -operating_loss),
            ("Valued Operating Time", WaterfallStepKind.LEVEL, buckets.value_operating_time),
        ]

        steps: List[WaterfallStep] = []
        cumulative = buckets.total_equipment_time

        for name, kind, value in definitions:
            if kind == WaterfallStepKind.LOSS:
                cumulative += value
            steps.append(WaterfallStep(name=name, value=value, kind=kind, cumulative=cumulative))

        return steps
