"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleetflow.app.api.v1.endpoints import (
    auth, vehicles, drivers, trips, maintenance, expenses, analytics
)

router = APIRouter()

# Authentication and account verification
router.include_router(auth.router)

# Fleet registry
router.include_router(vehicles.router)
router.include_router(drivers.router)

# Trip lifecycle
router.include_router(trips.router)

# Vehicle upkeep and costs
router.include_router(maintenance.router)
router.include_router(expenses.router)

# Dashboard and reports
router.include_router(analytics.router)
