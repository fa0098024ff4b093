"""
OEE Dashboard - OEE Calculation Engine

This package provides the OEE calculation engine and the services built on it.
"""

from .oee_calculator import OEECalculator
from .stop_tracker import StopTracker
from .timeline import TimelineAggregator, partition_periods

__all__ = ["OEECalculator", "StopTracker", "TimelineAggregator", "partition_periods"]
