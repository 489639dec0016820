"""
Tests for dashboard KPIs and cost reports.
"""

import pytest

from fleetflow.app.domain.trips.rules import utc_today
from fleetflow.app.models.fleet_enums import VehicleStatus
from fleetflow.app.services.analytics import fuel_efficiency, utilization_rate, vehicle_roi

TODAY = utc_today().isoformat()


def test_utilization_rate():
    assert utilization_rate(0, 0) == 0.0
    assert utilization_rate(1, 4) == 25.0
    assert utilization_rate(2, 3) == 66.67


def test_fuel_efficiency_without_fuel_is_zero():
    assert fuel_efficiency(500, 0) == 0.0
    assert fuel_efficiency(500, 50) == 10.0


def test_vehicle_roi():
    assert vehicle_roi(revenue=10000, fuel_cost=1500, maintenance_cost=500, acquisition_cost=40000) == 0.2
    assert vehicle_roi(revenue=100, fuel_cost=0, maintenance_cost=0, acquisition_cost=0) == 0.0


@pytest.mark.asyncio
async def test_dashboard_counts(client, analyst_headers, make_vehicle):
    await make_vehicle(status=VehicleStatus.AVAILABLE)
    await make_vehicle(status=VehicleStatus.ON_TRIP)
    await make_vehicle(status=VehicleStatus.IN_SHOP)
    await make_vehicle(status=VehicleStatus.ON_TRIP, region="South")
    await make_vehicle(status=VehicleStatus.RETIRED)

    response = await client.get("/api/analytics/dashboard", headers=analyst_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["total_fleet"] == 4
    assert body["active_fleet"] == 2
    assert body["in_shop"] == 1
    assert body["utilization_rate"] == 50.0

    response = await client.get("/api/analytics/dashboard", params={"region": "South"}, headers=analyst_headers)
    assert response.json()["total_fleet"] == 1
    assert response.json()["utilization_rate"] == 100.0


@pytest.mark.asyncio
async def test_empty_fleet_dashboard(client, dispatcher_headers):
    response = await client.get("/api/analytics/dashboard", headers=dispatcher_headers)

    assert response.status_code == 200
    assert response.json()["total_fleet"] == 0
    assert response.json()["utilization_rate"] == 0.0


@pytest.mark.asyncio
async def test_dashboard_counts_pending_cargo(client, dispatcher_headers, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    await client.post(
        "/api/trips",
        json={"vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "origin": "A", "destination": "B"},
        headers=dispatcher_headers,
    )

    response = await client.get("/api/analytics/dashboard", headers=dispatcher_headers)
    assert response.json()["pending_cargo"] == 1
    assert response.json()["dispatched_trips"] == 0


@pytest.mark.asyncio
async def test_report_and_vehicle_roi(client, manager_headers, dispatcher_headers, make_vehicle, make_driver):
    vehicle = await make_vehicle(acquisition_cost=10000)
    driver = await make_driver()

    trip = (await client.post(
        "/api/trips",
        json={"vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 100, "origin": "A", "destination": "B", "revenue": 3000},
        headers=dispatcher_headers,
    )).json()
    await client.post(f"/api/trips/{trip['id']}/dispatch", headers=dispatcher_headers)
    await client.post(f"/api/trips/{trip['id']}/complete", json={"actual_distance": 500}, headers=dispatcher_headers)

    await client.post(
        "/api/expenses",
        json={"vehicle_id": vehicle.id, "trip_id": trip["id"], "fuel_liters": 50, "fuel_cost": 400, "misc_cost": 100, "expense_date": TODAY},
        headers=manager_headers,
    )
    log = (await client.post(
        "/api/maintenance",
        json={"vehicle_id": vehicle.id, "service_type": "Tyres", "cost": 600, "service_date": TODAY},
        headers=manager_headers,
    )).json()
    await client.post(f"/api/maintenance/{log['id']}/close", headers=manager_headers)

    report = (await client.get("/api/analytics/report", headers=manager_headers)).json()
    assert report["completed_trips"] == 1
    assert report["total_distance"] == 500
    assert report["fuel_efficiency"] == 10.0
    assert report["total_expenses"] == 1100
    assert report["total_revenue"] == 3000
    assert report["net_profit"] == 1900

    breakdown = (await client.get("/api/analytics/vehicles", headers=manager_headers)).json()
    assert len(breakdown) == 1
    assert breakdown[0]["trips_completed"] == 1
    assert breakdown[0]["maintenance_cost"] == 600
    # (3000 - (400 + 600)) / 10000
    assert breakdown[0]["roi"] == 0.2


@pytest.mark.asyncio
async def test_report_is_restricted(client, dispatcher_headers):
    response = await client.get("/api/analytics/report", headers=dispatcher_headers)
    assert response.status_code == 403
