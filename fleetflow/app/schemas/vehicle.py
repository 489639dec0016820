"""
Vehicle registry schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from fleetflow.app.models.fleet_enums import VehicleStatus


class VehicleCreate(BaseModel):
    """
    Schema for registering a vehicle.

    Status is not accepted here; new vehicles start Available.
    """
    name: str = Field(..., min_length=1, max_length=255, description="Vehicle name or model")
    license_plate: str = Field(..., min_length=1, max_length=50, description="Unique license plate")
    vehicle_type: str = Field(default="Truck", max_length=100)
    region: Optional[str] = Field(default=None, max_length=100)
    max_load_capacity: float = Field(..., gt=0, allow_inf_nan=False, description="Capacity in kg")
    odometer: float = Field(default=0.0, ge=0, allow_inf_nan=False, description="Current reading in km")
    acquisition_cost: float = Field(default=0.0, ge=0, allow_inf_nan=False)


class VehicleUpdate(BaseModel):
    """Partial update; status changes go through retire, maintenance and trips."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    license_plate: Optional[str] = Field(default=None, min_length=1, max_length=50)
    vehicle_type: Optional[str] = Field(default=None, max_length=100)
    region: Optional[str] = Field(default=None, max_length=100)
    max_load_capacity: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    odometer: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    acquisition_cost: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    name: str
    license_plate: str
    vehicle_type: str
    region: Optional[str]
    max_load_capacity: float
    odometer: float
    acquisition_cost: float
    status: VehicleStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
