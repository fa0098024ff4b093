"""
OEE Dashboard - Custom Exception Classes

This module defines custom exception classes for the OEE Dashboard API.
These exceptions provide structured error handling with proper HTTP status codes
and detailed error information for better API responses.
"""

from typing import Any, Dict, Optional
from fastapi import status


class OEEDashboardException(Exception):
    """Base exception class for OEE Dashboard."""

    def __init__(
        self,
        message: str,
        error_code: str = "OEE_DASHBOARD_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(OEEDashboardException):
    """Exception raised for request validation failures."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class DatabaseError(OEEDashboardException):
    """Exception raised when the record store cannot be read."""

    def __init__(self, message: str = "Database operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="DATABASE_ERROR",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details
        )


class OEEError(OEEDashboardException):
    """Exception raised for OEE calculation errors."""

    def __init__(
        self,
        message: str = "OEE calculation error",
        details: Optional[Dict[str, Any]] = None,
        error_code: str = "OEE_ERROR",
        status_code: int = status.HTTP_400_BAD_REQUEST
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            details=details
        )


class InsufficientDataError(OEEError):
    """Raised when there are no machine status records to derive time buckets from."""

    def __init__(self, message: str = "No machine status data available", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            details=details,
            error_code="INSUFFICIENT_DATA",
            status_code=status.HTTP_404_NOT_FOUND
        )


# Utility functions for exception handling
def handle_database_exception(e: Exception) -> OEEDashboardException:
    """Convert database driver exceptions to DatabaseError."""
    if isinstance(e, OEEDashboardException):
        return e
    if "timeout" in str(e).lower():
        return DatabaseError("Database query timed out", {"original_error": str(e)})
    elif "connect" in str(e).lower():
        return DatabaseError("Database is unreachable", {"original_error": str(e)})
    else:
        return DatabaseError("Database operation failed", {"original_error": str(e)})
