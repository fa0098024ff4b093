"""
OEE Dashboard - Factory & Device API Routes

This module provides API endpoints for discovering the factories and
devices present in the sensor data store.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from oee_dashboard.api.dependencies import get_oee_service
from oee_dashboard.models.oee import DeviceResponse, FactoryResponse
from oee_dashboard.services.oee_analytics_service import OEEAnalyticsService

router = APIRouter()


@router.get("/factories", response_model=List[FactoryResponse], status_code=status.HTTP_200_OK)
async def get_factories(
    service: OEEAnalyticsService = Depends(get_oee_service)
) -> List[FactoryResponse]:
    """Get all factories."""
    return await service.get_factories()


@router.get("/devices", response_model=List[DeviceResponse], status_code=status.HTTP_200_OK)
async def get_devices(
    factory_id: Optional[str] = Query(None, alias="factoryId", description="Factory ID"),
    service: OEEAnalyticsService = Depends(get_oee_service)
) -> List[DeviceResponse]:
    """Get devices for a factory."""
    return await service.get_devices(factory_id)
