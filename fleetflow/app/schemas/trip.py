"""
Trip schemas.

Schemas for trip creation, editing, transitions and visibility.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from fleetflow.app.models.trip_enums import TripStatus


class TripCreate(BaseModel):
    """Schema for creating a Draft trip."""
    vehicle_id: int
    driver_id: int
    cargo_weight: float = Field(..., gt=0, allow_inf_nan=False, description="Cargo in kg")
    origin: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    estimated_distance: float = Field(default=0.0, ge=0, allow_inf_nan=False, description="km")
    revenue: float = Field(default=0.0, ge=0, allow_inf_nan=False)


class TripUpdate(BaseModel):
    """
    Schema for PUT /trips/{id}.

    With `status` set the request is a transition (Dispatched, Completed or
    Cancelled); otherwise it edits a Draft.
    """
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    cargo_weight: Optional[float] = Field(default=None, gt=0, allow_inf_nan=False)
    origin: Optional[str] = Field(default=None, min_length=1, max_length=255)
    destination: Optional[str] = Field(default=None, min_length=1, max_length=255)
    estimated_distance: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    revenue: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    status: Optional[TripStatus] = None
    actual_distance: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class TripComplete(BaseModel):
    """Body of POST /trips/{id}/complete."""
    actual_distance: float = Field(..., ge=0, allow_inf_nan=False, description="Distance driven in km")
    revenue: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


class TripResponse(BaseModel):
    """Schema for trip response."""
    id: int
    vehicle_id: int
    driver_id: int
    cargo_weight: float
    origin: str
    destination: str
    estimated_distance: float
    actual_distance: Optional[float]
    revenue: float
    status: TripStatus
    created_by: Optional[int]
    created_at: datetime
    updated_at: datetime
    dispatched_at: Optional[datetime]
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True


class TransitionResponse(BaseModel):
    """Result of a dispatch, completion or cancellation."""
    trip: TripResponse
    previous_status: TripStatus
    resources_released: bool
    vehicle_status: str
    driver_status: str
