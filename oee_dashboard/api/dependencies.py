"""
OEE Dashboard - API Dependencies
"""

from oee_dashboard.database import get_session_factory
from oee_dashboard.services.oee_analytics_service import OEEAnalyticsService
from oee_dashboard.services.sensor_data_repository import SensorDataRepository


def get_oee_service() -> OEEAnalyticsService:
    """Dependency for getting the OEE analytics service in FastAPI endpoints."""
    return OEEAnalyticsService(SensorDataRepository(get_session_factory()))
