"""
OEE Dashboard - Main FastAPI Application

This is the main entry point for the OEE Dashboard backend API.
It serves OEE summary, waterfall, timeline and stop cause views computed
from the machine status, production and quality records of factory devices.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.responses import Response
import structlog

from oee_dashboard.config import settings
from oee_dashboard.database import init_db, close_db, create_tables, check_database_health
from oee_dashboard.api.v1 import oee, factories
from oee_dashboard.monitoring.metrics import render_latest
from oee_dashboard.utils.exceptions import OEEDashboardException

# Configure structured logging
logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    # Startup
    logger.info("Starting OEE Dashboard API", environment=settings.ENVIRONMENT)
    await init_db()
    if settings.ENVIRONMENT == "development":
        await create_tables()

    yield

    # Shutdown
    logger.info("Shutting down OEE Dashboard API")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    OEE (Overall Equipment Effectiveness) API for factory devices.

    This API provides:
    - OEE1, OEE2, OEE3 and TCU summary metrics with their time buckets
    - Waterfall data from total equipment time to valued operating time
    - OEE timelines at hourly, daily or weekly granularity
    - Stop events grouped by loss category
    - Factory and device discovery
    """,
    version=settings.VERSION,
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    openapi_url="/openapi.json" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handlers
@app.exception_handler(OEEDashboardException)
async def oee_dashboard_exception_handler(request: Request, exc: OEEDashboardException) -> JSONResponse:
    """Handle custom OEE Dashboard exceptions."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "OEE Dashboard exception occurred",
        exception_type=type(exc).__name__,
        message=str(exc),
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": jsonable_encoder(exc.details)
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    logger.warning(
        "Validation error occurred",
        errors=exc.errors(),
        path=request.url.path,
        method=request.method
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors())
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "Unexpected error occurred",
        exception_type=type(exc).__name__,
        message=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "INTERNAL_SERVER_ERROR",
            "message": "An unexpected error occurred",
            "details": str(exc) if settings.DEBUG else None
        }
    )


# Health check endpoints
@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """Health check with database connectivity."""
    database = await check_database_health()

    return {
        "status": database["status"],
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "components": {
            "database": database["status"],
            "api": "healthy"
        }
    }


# Metrics endpoint for Prometheus
@app.get("/metrics", tags=["Monitoring"])
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.ENABLE_METRICS:
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    return Response(
        render_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


# Include API routers
app.include_router(oee.router, prefix="/api/v1/oee", tags=["OEE"])
app.include_router(factories.router, prefix="/api/v1", tags=["Factories & Devices"])


# Root endpoint
@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """Root endpoint with API information."""
    return {
        "message": settings.APP_NAME,
        "version": settings.VERSION,
        "docs": "/docs" if settings.ENVIRONMENT != "production" else "Documentation not available in production",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "oee_dashboard.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True
    )
