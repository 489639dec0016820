"""
Unit tests for trip assignment rules and the transition table.
"""

from datetime import date

from fleetflow.app.domain.trips.lifecycle import ALLOWED_TRANSITIONS, can_transition
from fleetflow.app.domain.trips.rules import (
    check_capacity,
    check_trip_assignment,
    effective_driver_status,
    license_expired,
)
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import DriverStatus, VehicleStatus
from fleetflow.app.models.trip_enums import TripStatus
from fleetflow.app.models.vehicle import Vehicle

TODAY = date(2026, 3, 15)


def vehicle(**overrides) -> Vehicle:
    fields = {"name": "Van-05", "license_plate": "VAN-05", "max_load_capacity": 5000.0, "status": VehicleStatus.AVAILABLE}
    fields.update(overrides)
    return Vehicle(**fields)


def driver(**overrides) -> Driver:
    fields = {
        "name": "Alex",
        "license_number": "DL-1",
        "license_category": "Van",
        "license_expiry": date(2027, 1, 1),
        "status": DriverStatus.OFF_DUTY,
    }
    fields.update(overrides)
    return Driver(**fields)


def test_valid_assignment_has_no_violations():
    assert check_trip_assignment(vehicle(), driver(), 450, TODAY) == []


def test_cargo_over_capacity_is_reported():
    message = check_capacity(vehicle(), 6000)
    assert message == "Cargo weight (6000 kg) exceeds vehicle capacity (5000 kg)"


def test_cargo_equal_to_capacity_is_allowed():
    assert check_capacity(vehicle(), 5000) is None


def test_unavailable_vehicle_is_reported():
    violations = check_trip_assignment(vehicle(status=VehicleStatus.IN_SHOP), driver(), 100, TODAY)
    assert violations == ["Vehicle is currently in shop"]


def test_license_valid_through_expiry_date():
    assert not license_expired(driver(license_expiry=TODAY), TODAY)
    assert license_expired(driver(license_expiry=date(2026, 3, 14)), TODAY)


def test_every_violation_is_collected_in_rule_order():
    violations = check_trip_assignment(
        vehicle(status=VehicleStatus.ON_TRIP),
        driver(license_expiry=date(2020, 1, 1), status=DriverStatus.SUSPENDED),
        9000,
        TODAY,
    )
    assert violations == [
        "Cargo weight (9000 kg) exceeds vehicle capacity (5000 kg)",
        "Vehicle is currently on trip",
        "Driver license has expired",
        "Driver is currently suspended",
    ]


def test_on_duty_driver_is_reported():
    violations = check_trip_assignment(vehicle(), driver(status=DriverStatus.ON_DUTY), 100, TODAY)
    assert violations == ["Driver is currently on duty"]


def test_expired_license_reads_as_suspended():
    expired = driver(license_expiry=date(2025, 12, 31), status=DriverStatus.OFF_DUTY)
    assert effective_driver_status(expired, TODAY) == DriverStatus.SUSPENDED
    assert effective_driver_status(driver(), TODAY) == DriverStatus.OFF_DUTY


def test_transition_table():
    assert can_transition(TripStatus.DRAFT, TripStatus.DISPATCHED)
    assert can_transition(TripStatus.DRAFT, TripStatus.CANCELLED)
    assert can_transition(TripStatus.DISPATCHED, TripStatus.COMPLETED)
    assert can_transition(TripStatus.DISPATCHED, TripStatus.CANCELLED)
    assert not can_transition(TripStatus.DRAFT, TripStatus.COMPLETED)
    assert not can_transition(TripStatus.DISPATCHED, TripStatus.DISPATCHED)


def test_terminal_states_allow_nothing():
    for terminal in (TripStatus.COMPLETED, TripStatus.CANCELLED):
        assert terminal.is_terminal
        assert ALLOWED_TRANSITIONS[terminal] == frozenset()
