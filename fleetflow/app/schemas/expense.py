"""
Expense schemas.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional


class ExpenseCreate(BaseModel):
    vehicle_id: int
    trip_id: Optional[int] = None
    fuel_liters: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    fuel_cost: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    misc_cost: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    expense_date: date
    notes: Optional[str] = None


class ExpenseUpdate(BaseModel):
    vehicle_id: Optional[int] = None
    trip_id: Optional[int] = None
    fuel_liters: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    fuel_cost: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    misc_cost: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    expense_date: Optional[date] = None
    notes: Optional[str] = None


class ExpenseResponse(BaseModel):
    id: int
    vehicle_id: int
    trip_id: Optional[int]
    fuel_liters: float
    fuel_cost: float
    misc_cost: float
    total_cost: float = 0.0
    expense_date: date
    notes: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseSummary(BaseModel):
    """Totals over every recorded expense."""
    expense_count: int
    total_fuel_liters: float
    total_fuel_cost: float
    total_misc_cost: float
    total_cost: float
    total_distance: float = Field(..., description="km over completed trips referenced by expenses")
    avg_cost_per_km: float
