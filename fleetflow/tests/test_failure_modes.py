"""
Failure Injection Tests.

A failing commit must leave trips, vehicles and drivers exactly as they
were, and a Redis outage must not lock users out.
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.core.redis_client import ping_redis
from fleetflow.app.models.audit_log import AuditLog
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import DriverStatus, VehicleStatus
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.trip_enums import TripStatus
from fleetflow.app.models.vehicle import Vehicle


@pytest.fixture
async def draft(client, dispatcher_headers, make_vehicle, make_driver):
    vehicle = await make_vehicle()
    driver = await make_driver()
    response = await client.post(
        "/api/trips",
        json={"vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": 200, "origin": "A", "destination": "B"},
        headers=dispatcher_headers,
    )
    assert response.status_code == 201, response.text
    return response.json(), vehicle, driver


@pytest.mark.asyncio
async def test_failed_commit_rolls_back_dispatch(client, dispatcher_headers, draft, fetch, count_rows, mocker):
    trip, vehicle, driver = draft
    audit_before = await count_rows(AuditLog)

    mocker.patch.object(
        AsyncSession, "commit", side_effect=OperationalError("COMMIT", {}, Exception("database is locked"))
    )
    response = await client.post(f"/api/trips/{trip['id']}/dispatch", headers=dispatcher_headers)
    mocker.stopall()

    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_TRIP_TRANSITION"

    assert (await fetch(Trip, trip["id"])).status == TripStatus.DRAFT
    assert (await fetch(Vehicle, vehicle.id)).status == VehicleStatus.AVAILABLE
    assert (await fetch(Driver, driver.id)).status == DriverStatus.OFF_DUTY
    assert await count_rows(AuditLog) == audit_before

    # The same transition succeeds once the database recovers
    response = await client.post(f"/api/trips/{trip['id']}/dispatch", headers=dispatcher_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_rejected_transition_writes_no_audit_entry(client, dispatcher_headers, draft, count_rows):
    trip, _, _ = draft
    audit_before = await count_rows(AuditLog)

    response = await client.post(
        f"/api/trips/{trip['id']}/complete", json={"actual_distance": 10}, headers=dispatcher_headers
    )

    assert response.status_code == 400
    assert await count_rows(AuditLog) == audit_before


@pytest.mark.asyncio
async def test_redis_outage_does_not_block_requests(client, make_user, mock_redis):
    _, headers = await make_user()
    await mock_redis.aclose()

    response = await client.get("/api/auth/me", headers=headers)

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_ping_reports_closed_redis(mock_redis):
    assert await ping_redis(mock_redis) is True
    await mock_redis.aclose()
    assert await ping_redis(mock_redis) is False


