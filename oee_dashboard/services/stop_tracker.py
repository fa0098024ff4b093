"""
OEE Dashboard - Stop Tracking Service

This module segments ordered machine status records into stop events,
contiguous intervals where the machine was not running, and categorizes
each stop by the OEE loss layer it belongs to.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
import structlog

from oee_dashboard.models.oee import (
    MachineStatus,
    StatusRecord,
    StopCategory,
    StopCategorySummary,
    StopEvent,
    StopsByCategory,
)
from oee_dashboard.utils.time_utils import hours_between

logger = structlog.get_logger()


class StopTracker:
    """Stop segmentation and categorization service."""

    def __init__(self):
        """Initialize stop tracker with category and name catalogs."""
        self.category_map = self._load_category_map()
        self.stop_names = self._load_stop_names()

    def segment_stops(self, status_records: Sequence[StatusRecord]) -> List[StopEvent]:
        """
        Segment status records into stop events.

        Adjacent records with the same non-running status merge into one
        event. A running record closes the open event. The last record has
        no known end, so it neither opens nor extends a stop.

        Args:
            status_records: Status records ordered by timestamp

        Returns:
            Stop events in chronological order
        """
        records = list(status_records)
        stops: List[StopEvent] = []
        open_stop: Optional[Dict[str, Any]] = None

        for current, following in zip(records, records[1:]):
            status = MachineStatus(current.status)

            if status == MachineStatus.RUNNING:
                if open_stop:
                    stops.append(self._close_stop(open_stop))
                    open_stop = None
                continue

            duration = hours_between(current.timestamp, following.timestamp)

            if open_stop and open_stop["status"] == status:
                open_stop["end_time"] = following.timestamp
                open_stop["duration_hours"] += duration
            else:
                if open_stop:
                    stops.append(self._close_stop(open_stop))
                open_stop = self._open_stop(status, current.timestamp, following.timestamp, duration)

        if open_stop:
            stops.append(self._close_stop(open_stop))

        logger.debug("Stops segmented", status_records=len(records), stops=len(stops))

        return stops

    def categorize(self, status: MachineStatus) -> StopCategory:
        """Map a machine status to its loss category."""
        return self.category_map.get(MachineStatus(status), StopCategory.UNKNOWN)

    def stop_name(self, status: MachineStatus) -> str:
        """Human readable name for a stop status."""
        return self.stop_names.get(MachineStatus(status), "Other")

    def group_by_category(self, stops: Sequence[StopEvent]) -> StopsByCategory:
        """Group stop events by loss category, preserving chronological order."""
        groups: Dict[StopCategory, List[StopEvent]] = {category: [] for category in StopCategory}
        for stop in stops:
            groups[StopCategory(stop.category)].append(stop)

        return StopsByCategory(
            loss_during_operation=groups[StopCategory.LOSS_DURING_OPERATION],
            batch_specific=groups[StopCategory.BATCH_SPECIFIC_NON_OPERATION],
            non_production=groups[StopCategory.NON_PRODUCTION_ACTIVITIES],
            unknown=groups[StopCategory.UNKNOWN]
        )

    def summarize(self, stops: Sequence[StopEvent]) -> List[StopCategorySummary]:
        """Event count and total hours per loss category."""
        summary = []
        for category in StopCategory:
            matching = [stop for stop in stops if stop.category == category]
            summary.append(StopCategorySummary(
                category=category,
                events=len(matching),
                total_hours=sum(stop.duration_hours for stop in matching)
            ))
        return summary

    def _open_stop(
        self,
        status: MachineStatus,
        start_time: datetime,
        end_time: datetime,
        duration: float
    ) -> Dict[str, Any]:
        """Start a new stop."""
        return {
            "start_time": start_time,
            "end_time": end_time,
            "duration_hours": duration,
            "status": status,
            "category": self.categorize(status),
            "name": self.stop_name(status)
        }

    def _close_stop(self, stop_data: Dict[str, Any]) -> StopEvent:
        """Freeze an open stop into a stop event."""
        return StopEvent(**stop_data)

    def _load_category_map(self) -> Dict[MachineStatus, StopCategory]:
        """Load status to loss category mapping."""
        return {
            MachineStatus.ERROR: StopCategory.LOSS_DURING_OPERATION,
            MachineStatus.IDLE: StopCategory.LOSS_DURING_OPERATION,
            MachineStatus.SETUP: StopCategory.BATCH_SPECIFIC_NON_OPERATION,
            MachineStatus.MAINTENANCE: StopCategory.BATCH_SPECIFIC_NON_OPERATION,
            MachineStatus.STOPPED: StopCategory.NON_PRODUCTION_ACTIVITIES,
        }

    def _load_stop_names(self) -> Dict[MachineStatus, str]:
        """Load human readable stop names."""
        return {
            MachineStatus.ERROR: "Equipment Failure",
            MachineStatus.IDLE: "Idle Time",
            MachineStatus.SETUP: "Setup/Changeover",
            MachineStatus.MAINTENANCE: "Planned Maintenance",
            MachineStatus.STOPPED: "Planned Downtime",
        }
