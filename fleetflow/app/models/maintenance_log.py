"""
Maintenance log database model.
"""

from sqlalchemy import Column, Integer, String, Float, Text, Date, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.fleet_enums import MaintenanceStatus


class MaintenanceLog(Base):
    """
    Maintenance log model.

    While any log for a vehicle is Open the vehicle is kept In Shop.
    """
    __tablename__ = "maintenance_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)

    service_type = Column(String(100), nullable=False)
    cost = Column(Float, nullable=False, default=0.0)
    service_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)

    status = Column(Enum(MaintenanceStatus), default=MaintenanceStatus.OPEN, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<MaintenanceLog(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
