"""
Vehicle, driver and maintenance status enumerations.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    AVAILABLE = "Available"  # Can be assigned to a trip
    ON_TRIP = "On Trip"  # Held by a dispatched trip
    IN_SHOP = "In Shop"  # Has at least one open maintenance log
    RETIRED = "Retired"  # Out of the fleet for good


class DriverStatus(str, enum.Enum):
    """Driver status enumeration."""
    ON_DUTY = "On Duty"  # Driving a dispatched trip
    OFF_DUTY = "Off Duty"  # Free for assignment
    SUSPENDED = "Suspended"  # Blocked, manually or by an expired license


class MaintenanceStatus(str, enum.Enum):
    """Maintenance log status enumeration."""
    OPEN = "Open"
    CLOSED = "Closed"
