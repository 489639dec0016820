"""
Maintenance log schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional
from fleetflow.app.models.fleet_enums import MaintenanceStatus


class MaintenanceCreate(BaseModel):
    """New logs are always Open and put the vehicle In Shop."""
    vehicle_id: int
    service_type: str = Field(..., min_length=1, max_length=100, description="e.g. Oil Change")
    cost: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    service_date: date
    notes: Optional[str] = None


class MaintenanceUpdate(BaseModel):
    service_type: Optional[str] = Field(default=None, min_length=1, max_length=100)
    cost: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    service_date: Optional[date] = None
    notes: Optional[str] = None


class MaintenanceResponse(BaseModel):
    id: int
    vehicle_id: int
    service_type: str
    cost: float
    service_date: date
    notes: Optional[str]
    status: MaintenanceStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
