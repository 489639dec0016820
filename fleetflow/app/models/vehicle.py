"""
Vehicle database model.

Vehicles are registered by Managers with a load capacity and odometer.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.fleet_enums import VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    Status is driven by the trip lifecycle (On Trip), maintenance logs
    (In Shop) and explicit retirement. The odometer only ever grows.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    license_plate = Column(String(50), unique=True, nullable=False, index=True)
    vehicle_type = Column(String(100), nullable=False, default="Truck")
    region = Column(String(100), nullable=True, index=True)

    max_load_capacity = Column(Float, nullable=False)  # kg
    odometer = Column(Float, nullable=False, default=0.0)  # km
    acquisition_cost = Column(Float, nullable=False, default=0.0)

    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, plate='{self.license_plate}', status='{self.status.value}')>"
