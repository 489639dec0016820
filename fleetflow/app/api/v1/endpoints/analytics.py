"""
Analytics API Endpoints.

Read-only dashboard data; cost reports for Managers and Analysts.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from fleetflow.app.db.session import get_db
from fleetflow.app.core.dependencies import AuthSession
from fleetflow.app.core.guards import require_role, ALL_ROLES, FINANCE_VIEWERS
from fleetflow.app.services.analytics import AnalyticsService
from fleetflow.app.schemas.analytics import DashboardStats, OperationalReport, VehicleAnalytics

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    vehicle_type: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    current_user: AuthSession = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Fleet KPIs: fleet size, active vehicles, utilization, pending cargo."""
    return await AnalyticsService.get_dashboard(db, vehicle_type=vehicle_type, region=region)


@router.get("/report", response_model=OperationalReport)
async def get_operational_report(
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    """Distance, fuel efficiency, costs, revenue and net profit."""
    return await AnalyticsService.get_operational_report(db)


@router.get("/vehicles", response_model=List[VehicleAnalytics])
async def get_vehicle_analytics(
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    """Cost, revenue and ROI per vehicle."""
    return await AnalyticsService.get_vehicle_breakdown(db)
