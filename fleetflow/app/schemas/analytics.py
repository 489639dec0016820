"""
Analytics schemas for the dashboard and operational reports.
"""

from pydantic import BaseModel
from typing import Optional


class DashboardStats(BaseModel):
    """Command-center KPIs, visible to every role."""
    total_fleet: int  # non-retired vehicles
    active_fleet: int  # On Trip
    in_shop: int
    available_vehicles: int
    utilization_rate: float  # percent
    pending_cargo: int  # Draft trips
    dispatched_trips: int
    drivers_on_duty: int


class OperationalReport(BaseModel):
    """Fleet-wide cost and performance figures."""
    completed_trips: int
    total_distance: float
    total_fuel_liters: float
    fuel_efficiency: float  # km per litre
    total_fuel_cost: float
    total_misc_cost: float
    total_maintenance_cost: float
    total_expenses: float
    total_revenue: float
    net_profit: float
    utilization_rate: float


class VehicleAnalytics(BaseModel):
    """Per-vehicle cost, revenue and ROI."""
    vehicle_id: int
    name: str
    license_plate: str
    status: str
    region: Optional[str]
    trips_completed: int
    total_distance: float
    fuel_liters: float
    fuel_cost: float
    maintenance_cost: float
    revenue: float
    fuel_efficiency: float
    roi: float
