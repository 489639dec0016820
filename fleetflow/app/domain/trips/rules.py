"""
Trip assignment rules.

Pure checks run before a trip is created, edited or dispatched. Each check
returns None when it passes or a human-readable message when it fails, so
callers can report every problem at once instead of stopping at the first.
"""

from datetime import date, datetime, timezone
from typing import List, Optional

from fleetflow.app.models.driver import Driver
from fleetflow.app.models.fleet_enums import DriverStatus, VehicleStatus
from fleetflow.app.models.vehicle import Vehicle


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """The calendar day every license check is made against (UTC)."""
    return utc_now().date()


def check_capacity(vehicle: Vehicle, cargo_weight: float) -> Optional[str]:
    if cargo_weight > vehicle.max_load_capacity:
        return (
            f"Cargo weight ({cargo_weight:g} kg) exceeds vehicle capacity "
            f"({vehicle.max_load_capacity:g} kg)"
        )
    return None


def check_vehicle_available(vehicle: Vehicle) -> Optional[str]:
    if vehicle.status != VehicleStatus.AVAILABLE:
        return f"Vehicle is currently {vehicle.status.value.lower()}"
    return None


def license_expired(driver: Driver, today: date) -> bool:
    # Valid through the expiry date itself
    return today > driver.license_expiry


def check_license_valid(driver: Driver, today: date) -> Optional[str]:
    if license_expired(driver, today):
        return "Driver license has expired"
    return None


def check_not_suspended(driver: Driver) -> Optional[str]:
    if driver.status == DriverStatus.SUSPENDED:
        return "Driver is currently suspended"
    return None


def check_not_on_duty(driver: Driver) -> Optional[str]:
    if driver.status == DriverStatus.ON_DUTY:
        return "Driver is currently on duty"
    return None


def check_trip_assignment(
    vehicle: Vehicle,
    driver: Driver,
    cargo_weight: float,
    today: Optional[date] = None,
) -> List[str]:
    """
    Run every assignment rule and collect the violations.

    Args:
        vehicle: Vehicle the trip would use
        driver: Driver the trip would use
        cargo_weight: Cargo in kg
        today: Reference date for the license check (defaults to the UTC date)

    Returns:
        Violation messages in rule order; empty when the assignment is valid
    """
    today = today or utc_today()
    results = [
        check_capacity(vehicle, cargo_weight),
        check_vehicle_available(vehicle),
        check_license_valid(driver, today),
        check_not_suspended(driver),
        check_not_on_duty(driver),
    ]
    return [message for message in results if message]


def effective_driver_status(driver: Driver, today: Optional[date] = None) -> DriverStatus:
    """
    Status a driver should be treated as having right now.

    An expired license reads as Suspended whatever the stored status says.
    """
    today = today or utc_today()
    if license_expired(driver, today):
        return DriverStatus.SUSPENDED
    return driver.status
