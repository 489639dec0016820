"""
Driver management schemas.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional
from fleetflow.app.models.fleet_enums import DriverStatus

# On Duty is only ever set by dispatching a trip
WRITABLE_DRIVER_STATUSES = (DriverStatus.OFF_DUTY, DriverStatus.SUSPENDED)


def _writable_status(value: Optional[DriverStatus]) -> Optional[DriverStatus]:
    if value is not None and value not in WRITABLE_DRIVER_STATUSES:
        raise ValueError("Driver status can only be set to Off Duty or Suspended")
    return value


class DriverCreate(BaseModel):
    """Schema for adding a driver."""
    name: str = Field(..., min_length=1, max_length=255)
    license_number: str = Field(..., min_length=1, max_length=100, description="Unique license number")
    license_category: str = Field(..., min_length=1, max_length=50, description="e.g. Truck, Van")
    license_expiry: date
    status: DriverStatus = DriverStatus.OFF_DUTY
    completion_rate: float = Field(default=0.0, ge=0, le=100, allow_inf_nan=False)
    safety_score: float = Field(default=100.0, ge=0, le=100, allow_inf_nan=False)

    @field_validator("status")
    @classmethod
    def check_status(cls, value):
        return _writable_status(value)


class DriverUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    license_number: Optional[str] = Field(default=None, min_length=1, max_length=100)
    license_category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    license_expiry: Optional[date] = None
    status: Optional[DriverStatus] = None
    completion_rate: Optional[float] = Field(default=None, ge=0, le=100, allow_inf_nan=False)
    safety_score: Optional[float] = Field(default=None, ge=0, le=100, allow_inf_nan=False)

    @field_validator("status")
    @classmethod
    def check_status(cls, value):
        return _writable_status(value)


class DriverResponse(BaseModel):
    """
    Schema for driver response.

    `status` is the effective status: an expired license reads as Suspended.
    """
    id: int
    name: str
    license_number: str
    license_category: str
    license_expiry: date
    status: DriverStatus
    license_expired: bool = False
    completion_rate: float
    safety_score: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
