"""
Integration tests for the vehicle registry and driver management.
"""

import pytest
from datetime import datetime, timedelta, timezone

from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import DriverStatus, VehicleStatus
from fleetflow.app.domain.trips.rules import utc_today

VEHICLE = {
    "name": "Volvo FH16",
    "license_plate": "MH-12-AB-1234",
    "vehicle_type": "Truck",
    "region": "West",
    "max_load_capacity": 12000,
    "odometer": 52000,
    "acquisition_cost": 85000,
}


def driver_payload(**overrides):
    payload = {
        "name": "Ravi",
        "license_number": "DL-2024-001",
        "license_category": "Truck",
        "license_expiry": (utc_today() + timedelta(days=200)).isoformat(),
    }
    payload.update(overrides)
    return payload


# --- Vehicles ---

@pytest.mark.asyncio
async def test_manager_registers_vehicle(client, manager_headers):
    response = await client.post("/api/vehicles", json=VEHICLE, headers=manager_headers)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "Available"
    assert body["odometer"] == 52000
    assert body["license_plate"] == VEHICLE["license_plate"]


@pytest.mark.asyncio
async def test_status_cannot_be_set_on_create(client, manager_headers):
    response = await client.post("/api/vehicles", json={**VEHICLE, "status": "On Trip"}, headers=manager_headers)

    assert response.status_code == 201
    assert response.json()["status"] == "Available"


@pytest.mark.asyncio
async def test_duplicate_plate_rejected(client, manager_headers):
    await client.post("/api/vehicles", json=VEHICLE, headers=manager_headers)
    response = await client.post("/api/vehicles", json=VEHICLE, headers=manager_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "ERR_CONFLICT"
    assert body["details"]["field"] == "license_plate"


@pytest.mark.asyncio
async def test_non_positive_capacity_rejected(client, manager_headers):
    response = await client.post(
        "/api/vehicles", json={**VEHICLE, "max_load_capacity": 0}, headers=manager_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_dispatcher_cannot_register_vehicle(client, dispatcher_headers):
    response = await client.post("/api/vehicles", json=VEHICLE, headers=dispatcher_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_every_role_can_list_vehicles(client, make_vehicle, analyst_headers, safety_headers):
    await make_vehicle()

    for headers in (analyst_headers, safety_headers):
        response = await client.get("/api/vehicles", headers=headers)
        assert response.status_code == 200
        assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_odometer_cannot_decrease(client, manager_headers, make_vehicle):
    vehicle = await make_vehicle(odometer=1000)

    response = await client.put(f"/api/vehicles/{vehicle.id}", json={"odometer": 900}, headers=manager_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Odometer cannot be decreased"

    response = await client.put(f"/api/vehicles/{vehicle.id}", json={"odometer": 1100}, headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["odometer"] == 1100


@pytest.mark.asyncio
async def test_vehicle_list_filters(client, manager_headers, make_vehicle):
    await make_vehicle(vehicle_type="Van", region="North")
    truck = await make_vehicle(vehicle_type="Truck", region="South")
    await make_vehicle(status=VehicleStatus.IN_SHOP)

    response = await client.get("/api/vehicles", params={"vehicle_type": "Truck", "region": "South"}, headers=manager_headers)
    assert [v["id"] for v in response.json()] == [truck.id]

    response = await client.get("/api/vehicles", params={"status": "In Shop"}, headers=manager_headers)
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_retire_vehicle(client, manager_headers, make_vehicle):
    vehicle = await make_vehicle()

    response = await client.post(f"/api/vehicles/{vehicle.id}/retire", headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Retired"

    response = await client.post(f"/api/vehicles/{vehicle.id}/retire", headers=manager_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_vehicle_on_trip_cannot_be_retired_or_deleted(client, manager_headers, make_vehicle):
    vehicle = await make_vehicle(status=VehicleStatus.ON_TRIP)

    response = await client.post(f"/api/vehicles/{vehicle.id}/retire", headers=manager_headers)
    assert response.status_code == 400

    response = await client.delete(f"/api/vehicles/{vehicle.id}", headers=manager_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_unused_vehicle(client, manager_headers, make_vehicle):
    vehicle = await make_vehicle()

    response = await client.delete(f"/api/vehicles/{vehicle.id}", headers=manager_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/vehicles/{vehicle.id}", headers=manager_headers)
    assert response.status_code == 404


# --- Drivers ---

@pytest.mark.asyncio
async def test_safety_officer_adds_driver(client, safety_headers):
    response = await client.post("/api/drivers", json=driver_payload(), headers=safety_headers)

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["status"] == "Off Duty"
    assert body["license_expired"] is False
    assert body["safety_score"] == 100


@pytest.mark.asyncio
async def test_dispatcher_cannot_add_driver(client, dispatcher_headers):
    response = await client.post("/api/drivers", json=driver_payload(), headers=dispatcher_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_driver_with_expired_license_is_stored_suspended(client, safety_headers, fetch):
    expired = (utc_today() - timedelta(days=3)).isoformat()

    response = await client.post("/api/drivers", json=driver_payload(license_expiry=expired), headers=safety_headers)

    assert response.status_code == 201
    assert response.json()["status"] == "Suspended"
    assert (await fetch(Driver, response.json()["id"])).status == DriverStatus.SUSPENDED


@pytest.mark.asyncio
async def test_expired_license_reads_as_suspended(client, safety_headers, make_driver):
    # Stored Off Duty, license lapsed since the record was written
    driver = await make_driver(license_expiry=utc_today() - timedelta(days=1))

    response = await client.get(f"/api/drivers/{driver.id}", headers=safety_headers)
    assert response.json()["status"] == "Suspended"
    assert response.json()["license_expired"] is True

    response = await client.get("/api/drivers", params={"status": "Suspended"}, headers=safety_headers)
    assert [d["id"] for d in response.json()] == [driver.id]


@pytest.mark.asyncio
async def test_on_duty_cannot_be_set_directly(client, safety_headers):
    response = await client.post("/api/drivers", json=driver_payload(status="On Duty"), headers=safety_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_suspend_and_reinstate_driver(client, safety_headers, make_driver):
    driver = await make_driver()

    response = await client.put(f"/api/drivers/{driver.id}", json={"status": "Suspended"}, headers=safety_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Suspended"

    response = await client.put(f"/api/drivers/{driver.id}", json={"status": "Off Duty"}, headers=safety_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "Off Duty"


@pytest.mark.asyncio
async def test_cannot_reinstate_with_expired_license(client, safety_headers, make_driver):
    driver = await make_driver(
        license_expiry=utc_today() - timedelta(days=10), status=DriverStatus.SUSPENDED
    )

    response = await client.put(f"/api/drivers/{driver.id}", json={"status": "Off Duty"}, headers=safety_headers)
    assert response.status_code == 400

    renewed = (utc_today() + timedelta(days=365)).isoformat()
    response = await client.put(
        f"/api/drivers/{driver.id}", json={"status": "Off Duty", "license_expiry": renewed}, headers=safety_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "Off Duty"


@pytest.mark.asyncio
async def test_on_duty_driver_cannot_be_deleted(client, safety_headers, make_driver):
    driver = await make_driver(status=DriverStatus.ON_DUTY)

    response = await client.delete(f"/api/drivers/{driver.id}", headers=safety_headers)
    assert response.status_code == 400

    response = await client.put(f"/api/drivers/{driver.id}", json={"status": "Suspended"}, headers=safety_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_license_number_rejected(client, safety_headers):
    await client.post("/api/drivers", json=driver_payload(), headers=safety_headers)
    response = await client.post("/api/drivers", json=driver_payload(name="Other"), headers=safety_headers)

    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_CONFLICT"


@pytest.mark.asyncio
async def test_license_expiry_uses_one_calendar_day_near_midnight(client, safety_headers, dispatcher_headers, make_vehicle, mocker):
    # 00:30 UTC: local clocks west of Greenwich are still on the previous day
    mocker.patch(
        "fleetflow.app.domain.trips.rules.utc_now",
        return_value=datetime(2026, 10, 19, 0, 30, tzinfo=timezone.utc),
    )
    vehicle = await make_vehicle()

    lapsed = await client.post(
        "/api/drivers", json=driver_payload(license_expiry="2026-10-18"), headers=safety_headers
    )
    assert lapsed.json()["status"] == "Suspended"
    assert lapsed.json()["license_expired"] is True

    valid = await client.post(
        "/api/drivers",
        json=driver_payload(license_number="DL-2024-002", license_expiry="2026-10-19"),
        headers=safety_headers,
    )
    assert valid.json()["status"] == "Off Duty"
    assert valid.json()["license_expired"] is False

    trip = {"vehicle_id": vehicle.id, "cargo_weight": 100, "origin": "A", "destination": "B"}
    response = await client.post("/api/trips", json={**trip, "driver_id": lapsed.json()["id"]}, headers=dispatcher_headers)
    assert response.status_code == 400
    assert "Driver license has expired" in response.json()["details"]["violations"]

    response = await client.post("/api/trips", json={**trip, "driver_id": valid.json()["id"]}, headers=dispatcher_headers)
    assert response.status_code == 201, response.text
