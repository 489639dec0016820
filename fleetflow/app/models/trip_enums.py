"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    DRAFT = "Draft"  # Validated and saved, nothing held yet
    DISPATCHED = "Dispatched"  # Vehicle and driver committed to the trip
    COMPLETED = "Completed"  # Delivered, odometer updated
    CANCELLED = "Cancelled"  # Abandoned before completion

    @property
    def is_terminal(self) -> bool:
        return self in (TripStatus.COMPLETED, TripStatus.CANCELLED)
