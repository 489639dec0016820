"""
FastAPI Application Entry Point.

This is the main application file for the FleetFlow Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fleetflow.app.core.config import settings
from fleetflow.app.api.v1.router import router as api_v1_router
from fleetflow.app.core.observability import ObservabilityMiddleware, configure_logging
from fleetflow.app.core.redis_client import ping_redis
from fleetflow.app.db.session import engine, Base
from fleetflow.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleetflow.app.models.user import User
from fleetflow.app.models.audit_log import AuditLog
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.trip import Trip  # after vehicles and drivers for FKs
from fleetflow.app.models.maintenance_log import MaintenanceLog
from fleetflow.app.models.expense import Expense

configure_logging(settings.log_level)
logger = logging.getLogger("fleetflow")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup. A failure here aborts startup.
    2. Disposes the connection pool on shutdown.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception:
        logger.exception("Database initialisation failed")
        raise
    logger.info("%s started", settings.app_name)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Fleet and logistics operations: vehicles, drivers, trips, maintenance and costs",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to FleetFlow Backend API",
        "docs": "/docs",
        "health": "/health",
    }
