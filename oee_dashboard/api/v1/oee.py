"""
OEE Dashboard - OEE API Routes

This module provides API endpoints for the OEE summary, waterfall,
timeline and stop cause views of a single device.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from oee_dashboard.api.dependencies import get_oee_service
from oee_dashboard.models.oee import (
    OEESummaryResponse,
    OEETimelineResponse,
    OEEWaterfallResponse,
    StopCausesResponse,
)
from oee_dashboard.services.oee_analytics_service import OEEAnalyticsService

router = APIRouter()


@router.get("/summary", response_model=OEESummaryResponse, status_code=status.HTTP_200_OK)
async def get_oee_summary(
    factory_id: str = Query(..., alias="factoryId", description="Factory ID"),
    device_id: str = Query(..., alias="deviceId", description="Device ID"),
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Window start (defaults to 2023-01-01)"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Window end (defaults to now)"),
    service: OEEAnalyticsService = Depends(get_oee_service)
) -> OEESummaryResponse:
    """Get OEE time buckets and ratios for a device."""
    return await service.get_summary(factory_id, device_id, start_date, end_date)


@router.get("/waterfall", response_model=OEEWaterfallResponse, status_code=status.HTTP_200_OK)
async def get_oee_waterfall(
    factory_id: str = Query(..., alias="factoryId", description="Factory ID"),
    device_id: str = Query(..., alias="deviceId", description="Device ID"),
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Window start (defaults to 2023-01-01)"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Window end (defaults to now)"),
    service: OEEAnalyticsService = Depends(get_oee_service)
) -> OEEWaterfallResponse:
    """Get OEE waterfall chart data for a device."""
    return await service.get_waterfall(factory_id, device_id, start_date, end_date)


@router.get("/timeline", response_model=OEETimelineResponse, status_code=status.HTTP_200_OK)
async def get_oee_timeline(
    factory_id: str = Query(..., alias="factoryId", description="Factory ID"),
    device_id: str = Query(..., alias="deviceId", description="Device ID"),
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Window start (defaults to 2023-01-01)"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Window end (defaults to now)"),
    interval: Optional[str] = Query(None, description="hourly, daily or weekly (defaults to daily)"),
    service: OEEAnalyticsService = Depends(get_oee_service)
) -> OEETimelineResponse:
    """Get OEE ratios over time for a device."""
    return await service.get_timeline(factory_id, device_id, start_date, end_date, interval)


@router.get("/stops", response_model=StopCausesResponse, status_code=status.HTTP_200_OK)
async def get_stop_causes(
    factory_id: str = Query(..., alias="factoryId", description="Factory ID"),
    device_id: str = Query(..., alias="deviceId", description="Device ID"),
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Window start (defaults to 2023-01-01)"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Window end (defaults to now)"),
    service: OEEAnalyticsService = Depends(get_oee_service)
) -> StopCausesResponse:
    """Get stop events by loss category for a device."""
    return await service.get_stop_causes(factory_id, device_id, start_date, end_date)
