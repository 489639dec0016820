"""
Analytics Service.

Handles data aggregation for the dashboard, reports and expense totals.
Focused on READ-ONLY operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional

from fleetflow.app.models.driver import Driver
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.fleet_enums import DriverStatus, VehicleStatus
from fleetflow.app.models.maintenance_log import MaintenanceLog
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.trip_enums import TripStatus
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.schemas.analytics import DashboardStats, OperationalReport, VehicleAnalytics
from fleetflow.app.schemas.expense import ExpenseSummary


def utilization_rate(active: int, fleet_size: int) -> float:
    """Percentage of non-retired vehicles currently On Trip."""
    if fleet_size <= 0:
        return 0.0
    return round(active / fleet_size * 100, 2)


def fuel_efficiency(distance: float, liters: float) -> float:
    """km per litre, 0 when no fuel was logged."""
    if liters <= 0:
        return 0.0
    return round(distance / liters, 2)


def vehicle_roi(revenue: float, fuel_cost: float, maintenance_cost: float, acquisition_cost: float) -> float:
    """(revenue - (fuel + maintenance)) / acquisition cost, 0 for a free vehicle."""
    if not acquisition_cost:
        return 0.0
    return round((revenue - (fuel_cost + maintenance_cost)) / acquisition_cost, 4)


class AnalyticsService:

    @staticmethod
    async def get_dashboard(
        db: AsyncSession,
        vehicle_type: Optional[str] = None,
        region: Optional[str] = None,
    ) -> DashboardStats:
        """Get fleet KPIs, optionally narrowed to one vehicle type or region."""

        vehicle_filters = [Vehicle.status != VehicleStatus.RETIRED]
        if vehicle_type:
            vehicle_filters.append(Vehicle.vehicle_type == vehicle_type)
        if region:
            vehicle_filters.append(Vehicle.region == region)

        # 1. Vehicle counts by status
        status_rows = await db.execute(
            select(Vehicle.status, func.count(Vehicle.id))
            .where(*vehicle_filters)
            .group_by(Vehicle.status)
        )
        by_status = {row[0]: row[1] for row in status_rows}
        total_fleet = sum(by_status.values())
        active = by_status.get(VehicleStatus.ON_TRIP, 0)

        # 2. Trips waiting for dispatch and trips on the road
        trip_query = select(Trip.status, func.count(Trip.id)).join(Vehicle, Vehicle.id == Trip.vehicle_id)
        if vehicle_type:
            trip_query = trip_query.where(Vehicle.vehicle_type == vehicle_type)
        if region:
            trip_query = trip_query.where(Vehicle.region == region)
        trip_rows = await db.execute(
            trip_query.where(Trip.status.in_([TripStatus.DRAFT, TripStatus.DISPATCHED])).group_by(Trip.status)
        )
        trips_by_status = {row[0]: row[1] for row in trip_rows}

        # 3. Drivers
        on_duty = (await db.execute(
            select(func.count(Driver.id)).where(Driver.status == DriverStatus.ON_DUTY)
        )).scalar() or 0

        return DashboardStats(
            total_fleet=total_fleet,
            active_fleet=active,
            in_shop=by_status.get(VehicleStatus.IN_SHOP, 0),
            available_vehicles=by_status.get(VehicleStatus.AVAILABLE, 0),
            utilization_rate=utilization_rate(active, total_fleet),
            pending_cargo=trips_by_status.get(TripStatus.DRAFT, 0),
            dispatched_trips=trips_by_status.get(TripStatus.DISPATCHED, 0),
            drivers_on_duty=on_duty,
        )

    @staticmethod
    async def get_operational_report(db: AsyncSession) -> OperationalReport:
        """Fleet-wide totals over completed trips, expenses and maintenance."""

        trips_row = (await db.execute(
            select(
                func.count(Trip.id),
                func.coalesce(func.sum(Trip.actual_distance), 0.0),
                func.coalesce(func.sum(Trip.revenue), 0.0),
            ).where(Trip.status == TripStatus.COMPLETED)
        )).one()
        completed, distance, revenue = trips_row[0], float(trips_row[1]), float(trips_row[2])

        expense_row = (await db.execute(
            select(
                func.coalesce(func.sum(Expense.fuel_liters), 0.0),
                func.coalesce(func.sum(Expense.fuel_cost), 0.0),
                func.coalesce(func.sum(Expense.misc_cost), 0.0),
            )
        )).one()
        liters, fuel_cost, misc_cost = (float(value) for value in expense_row)

        maintenance_cost = float((await db.execute(
            select(func.coalesce(func.sum(MaintenanceLog.cost), 0.0))
        )).scalar() or 0.0)

        fleet_size = (await db.execute(
            select(func.count(Vehicle.id)).where(Vehicle.status != VehicleStatus.RETIRED)
        )).scalar() or 0
        active = (await db.execute(
            select(func.count(Vehicle.id)).where(Vehicle.status == VehicleStatus.ON_TRIP)
        )).scalar() or 0

        total_expenses = fuel_cost + misc_cost + maintenance_cost

        return OperationalReport(
            completed_trips=completed,
            total_distance=distance,
            total_fuel_liters=liters,
            fuel_efficiency=fuel_efficiency(distance, liters),
            total_fuel_cost=fuel_cost,
            total_misc_cost=misc_cost,
            total_maintenance_cost=maintenance_cost,
            total_expenses=total_expenses,
            total_revenue=revenue,
            net_profit=revenue - total_expenses,
            utilization_rate=utilization_rate(active, fleet_size),
        )

    @staticmethod
    async def get_vehicle_breakdown(db: AsyncSession) -> List[VehicleAnalytics]:
        """Get cost, revenue and ROI per vehicle."""

        # Aggregate each table separately; joining them all at once would
        # multiply sums across trips, expenses and logs.
        trip_stats = {
            row.vehicle_id: row for row in await db.execute(
                select(
                    Trip.vehicle_id,
                    func.count(Trip.id).label("trips"),
                    func.coalesce(func.sum(Trip.actual_distance), 0.0).label("distance"),
                    func.coalesce(func.sum(Trip.revenue), 0.0).label("revenue"),
                ).where(Trip.status == TripStatus.COMPLETED).group_by(Trip.vehicle_id)
            )
        }
        fuel_stats = {
            row.vehicle_id: row for row in await db.execute(
                select(
                    Expense.vehicle_id,
                    func.coalesce(func.sum(Expense.fuel_liters), 0.0).label("liters"),
                    func.coalesce(func.sum(Expense.fuel_cost), 0.0).label("fuel_cost"),
                ).group_by(Expense.vehicle_id)
            )
        }
        maintenance_stats = {
            row.vehicle_id: float(row.cost) for row in await db.execute(
                select(
                    MaintenanceLog.vehicle_id,
                    func.coalesce(func.sum(MaintenanceLog.cost), 0.0).label("cost"),
                ).group_by(MaintenanceLog.vehicle_id)
            )
        }

        vehicles = (await db.execute(select(Vehicle).order_by(Vehicle.id))).scalars().all()

        data = []
        for vehicle in vehicles:
            trips = trip_stats.get(vehicle.id)
            fuel = fuel_stats.get(vehicle.id)
            distance = float(trips.distance) if trips else 0.0
            revenue = float(trips.revenue) if trips else 0.0
            liters = float(fuel.liters) if fuel else 0.0
            fuel_cost = float(fuel.fuel_cost) if fuel else 0.0
            maintenance_cost = maintenance_stats.get(vehicle.id, 0.0)

            data.append(VehicleAnalytics(
                vehicle_id=vehicle.id,
                name=vehicle.name,
                license_plate=vehicle.license_plate,
                status=vehicle.status.value,
                region=vehicle.region,
                trips_completed=trips.trips if trips else 0,
                total_distance=distance,
                fuel_liters=liters,
                fuel_cost=fuel_cost,
                maintenance_cost=maintenance_cost,
                revenue=revenue,
                fuel_efficiency=fuel_efficiency(distance, liters),
                roi=vehicle_roi(revenue, fuel_cost, maintenance_cost, vehicle.acquisition_cost),
            ))
        return data

    @staticmethod
    async def get_expense_summary(db: AsyncSession) -> ExpenseSummary:
        """Expense totals plus average cost per km over the trips they reference."""

        row = (await db.execute(
            select(
                func.count(Expense.id),
                func.coalesce(func.sum(Expense.fuel_liters), 0.0),
                func.coalesce(func.sum(Expense.fuel_cost), 0.0),
                func.coalesce(func.sum(Expense.misc_cost), 0.0),
            )
        )).one()
        count = row[0]
        liters, fuel_cost, misc_cost = float(row[1]), float(row[2]), float(row[3])

        referenced_trips = select(Expense.trip_id).where(Expense.trip_id.is_not(None)).distinct()
        distance = float((await db.execute(
            select(func.coalesce(func.sum(Trip.actual_distance), 0.0)).where(
                Trip.status == TripStatus.COMPLETED,
                Trip.id.in_(referenced_trips),
            )
        )).scalar() or 0.0)

        total = fuel_cost + misc_cost
        return ExpenseSummary(
            expense_count=count,
            total_fuel_liters=liters,
            total_fuel_cost=fuel_cost,
            total_misc_cost=misc_cost,
            total_cost=total,
            total_distance=distance,
            avg_cost_per_km=round(total / distance, 2) if distance > 0 else 0.0,
        )
