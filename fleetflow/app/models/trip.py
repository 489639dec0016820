"""
Trip database model.

Trips move cargo with one vehicle and one driver. All status changes go
through the trip lifecycle controller.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.

    A trip starts as a validated Draft, is dispatched (holding its vehicle
    and driver), and ends Completed or Cancelled.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Assignment
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=False, index=True)

    # Cargo and route
    cargo_weight = Column(Float, nullable=False)  # kg
    origin = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    estimated_distance = Column(Float, nullable=False, default=0.0)  # km
    actual_distance = Column(Float, nullable=True)  # km, set on completion

    revenue = Column(Float, nullable=False, default=0.0)

    # Status
    status = Column(Enum(TripStatus), default=TripStatus.DRAFT, nullable=False, index=True)

    created_by = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Trip(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
