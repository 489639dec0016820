"""
Expense database model.

Fuel and miscellaneous costs, recorded per vehicle and optionally per trip.
"""

from sqlalchemy import Column, Integer, Float, Text, Date, DateTime, ForeignKey
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base


class Expense(Base):
    """Expense record. Has no side effects on other entities."""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey('trips.id'), nullable=True, index=True)

    fuel_liters = Column(Float, nullable=False, default=0.0)
    fuel_cost = Column(Float, nullable=False, default=0.0)
    misc_cost = Column(Float, nullable=False, default=0.0)
    expense_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def total_cost(self) -> float:
        return (self.fuel_cost or 0.0) + (self.misc_cost or 0.0)

    def __repr__(self):
        return f"<Expense(id={self.id}, vehicle_id={self.vehicle_id}, trip_id={self.trip_id})>"
