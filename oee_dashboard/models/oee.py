"""
OEE Dashboard - OEE Models

This module defines Pydantic models for the OEE calculation engine and the
API responses built from it: raw machine status, production and quality
records, the derived time buckets, ratios, stop events, waterfall steps and
timeline points.
"""

from datetime import datetime, timedelta
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, validator
from pydantic.alias_generators import to_camel


# Enums for status and types
class MachineStatus(str, Enum):
    """Machine status enumeration."""
    RUNNING = "running"
    SETUP = "setup"
    MAINTENANCE = "maintenance"
    STOPPED = "stopped"
    IDLE = "idle"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.UNKNOWN


class StopCategory(str, Enum):
    """Loss category assigned to a stop event."""
    LOSS_DURING_OPERATION = "loss_during_operation"
    BATCH_SPECIFIC_NON_OPERATION = "batch_specific_non_operation"
    NON_PRODUCTION_ACTIVITIES = "non_production_activities"
    UNKNOWN = "unknown"


class EfficiencyBasis(str, Enum):
    """Where the efficiency applied to running time came from."""
    MEASURED = "measured"
    ASSUMED = "assumed"


class WaterfallStepKind(str, Enum):
    """Waterfall step kind enumeration."""
    LEVEL = "level"
    LOSS = "loss"


class TimelineInterval(str, Enum):
    """Timeline granularity enumeration."""
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def duration(self) -> timedelta:
        return _INTERVAL_DURATIONS[self]

    @classmethod
    def parse(cls, value: Optional[str]) -> "TimelineInterval":
        """Parse an interval name, falling back to daily for anything unrecognised."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.DAILY


_INTERVAL_DURATIONS = {
    TimelineInterval.HOURLY: timedelta(hours=1),
    TimelineInterval.DAILY: timedelta(days=1),
    TimelineInterval.WEEKLY: timedelta(weeks=1),
}


# Base models
class BaseOEEModel(BaseModel):
    """Base model for OEE value objects, serialised with camelCase field names."""

    class Config:
        from_attributes = True
        use_enum_values = True
        frozen = True
        alias_generator = to_camel
        populate_by_name = True


# Raw record models
class StatusRecord(BaseOEEModel):
    """Machine state effective from its timestamp until the next record."""
    timestamp: datetime = Field(..., description="Time the status took effect")
    status: MachineStatus = Field(..., description="Machine status")

    @validator("status", pre=True)
    def coerce_status(cls, v):
        """Map unrecognised status strings to UNKNOWN instead of rejecting them."""
        return MachineStatus(v)


class ProductionRecord(BaseOEEModel):
    """Production counter sample."""
    timestamp: datetime = Field(..., description="Sample time")
    interval_count: float = Field(0, ge=0, description="Units produced in the sampling interval")
    efficiency: float = Field(0, ge=0, description="Interval efficiency in percent (nominally 0-100)")


class QualityRecord(BaseOEEModel):
    """Quality check sample."""
    timestamp: datetime = Field(..., description="Sample time")
    defect_rate: float = Field(0, ge=0, le=1, description="Defect rate as a fraction")


class TimeWindow(BaseOEEModel):
    """Closed-open calculation window."""
    start: datetime = Field(..., description="Window start")
    end: datetime = Field(..., description="Window end")

    @validator("end")
    def validate_end(cls, v, values):
        """Validate that end time is after start time."""
        if "start" in values and v <= values["start"]:
            raise ValueError("Window end must be after start")
        return v

    @property
    def total_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


class Period(BaseOEEModel):
    """Sub-window produced by the period partitioner."""
    start: datetime
    end: datetime


# Derived models
class TimeBuckets(BaseOEEModel):
    """Nested time buckets in hours.

    For valid inputs ``0 <= value_operating_time <= operating_time <=
    production_time <= manned_time <= total_equipment_time``.
    """
    value_operating_time: float
    operating_time: float
    production_time: float
    manned_time: float
    total_equipment_time: float

    running_time: float = 0.0
    setup_time: float = 0.0
    maintenance_time: float = 0.0
    stopped_time: float = 0.0
    idle_time: float = 0.0
    error_time: float = 0.0

    efficiency_basis: EfficiencyBasis = EfficiencyBasis.ASSUMED
    efficiency_percent: float = Field(..., description="Efficiency applied to running time")
    defect_rate: Optional[float] = Field(None, description="Mean defect rate applied, if any quality data")


class OEERatios(BaseOEEModel):
    """OEE ratios in percent."""
    oee1: float
    oee2: float
    oee3: float
    tcu: float


class OEEMetrics(BaseOEEModel):
    """Time buckets and ratios for one window.

    Ratios are not clamped. Measured efficiency above 100 percent makes
    value-operating time exceed operating time, and the ratios read above
    100; that signals bad upstream data.
    When no status records exist ``data_available`` is false and the buckets
    and ratios are null.
    """
    data_available: bool = True
    buckets: Optional[TimeBuckets] = None
    oee1: Optional[float] = None
    oee2: Optional[float] = None
    oee3: Optional[float] = None
    tcu: Optional[float] = None

    def ratios(self) -> Optional[OEERatios]:
        if not self.data_available:
            return None
        return OEERatios(oee1=self.oee1, oee2=self.oee2, oee3=self.oee3, tcu=self.tcu)


class StopEvent(BaseOEEModel):
    """Maximal contiguous run of a single non-running status."""
    start_time: datetime
    end_time: datetime
    duration_hours: float
    status: MachineStatus
    category: StopCategory
    name: str


class WaterfallStep(BaseOEEModel):
    """Waterfall bar; levels are absolute, losses are signed deltas."""
    name: str
    value: float
    kind: WaterfallStepKind
    cumulative: float = Field(..., description="Bridge level after this step")


class TimelinePoint(BaseOEEModel):
    """OEE ratios for one timeline period."""
    timestamp: datetime = Field(..., description="Period start")
    period_end: datetime
    data_available: bool = True
    oee1: Optional[float] = None
    oee2: Optional[float] = None
    oee3: Optional[float] = None
    tcu: Optional[float] = None


# Response models
class PeriodInfo(BaseOEEModel):
    """Requested window echoed back in responses."""
    start: datetime
    end: datetime
    total_hours: Optional[float] = None
    interval: Optional[TimelineInterval] = None


class OEESummaryResponse(BaseOEEModel):
    """Model for OEE summary response."""
    factory_id: str
    device_id: str
    period: PeriodInfo
    metrics: OEEMetrics


class OEEWaterfallResponse(BaseOEEModel):
    """Model for OEE waterfall response."""
    factory_id: str
    device_id: str
    period: PeriodInfo
    data_available: bool
    waterfall_data: List[WaterfallStep]
    metrics: Optional[OEERatios] = None


class OEETimelineResponse(BaseOEEModel):
    """Model for OEE timeline response."""
    factory_id: str
    device_id: str
    period: PeriodInfo
    timeline: List[TimelinePoint]


class StopsByCategory(BaseOEEModel):
    """Stop events grouped by loss category."""
    loss_during_operation: List[StopEvent] = Field(default_factory=list)
    batch_specific: List[StopEvent] = Field(default_factory=list)
    non_production: List[StopEvent] = Field(default_factory=list)
    unknown: List[StopEvent] = Field(default_factory=list)


class StopCategorySummary(BaseOEEModel):
    """Event count and total hours for one stop category."""
    category: StopCategory
    events: int
    total_hours: float


class StopCausesResponse(BaseOEEModel):
    """Model for stop causes response."""
    factory_id: str
    device_id: str
    period: PeriodInfo
    stops_by_category: StopsByCategory
    summary: List[StopCategorySummary]


class FactoryResponse(BaseOEEModel):
    """Factory known to the record store."""
    id: str
    name: str


class DeviceResponse(BaseOEEModel):
    """Device known to the record store."""
    id: str
    type: Optional[str] = None
