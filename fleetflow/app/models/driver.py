"""
Driver database model.
"""

from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Enum
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base
from fleetflow.app.models.fleet_enums import DriverStatus


class Driver(Base):
    """
    Driver model.

    The stored status can lag behind the license expiry date; readers
    should go through effective_driver_status() instead of using it raw.
    """
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    license_number = Column(String(100), unique=True, nullable=False, index=True)
    license_category = Column(String(50), nullable=False)
    license_expiry = Column(Date, nullable=False)

    status = Column(Enum(DriverStatus), default=DriverStatus.OFF_DUTY, nullable=False, index=True)

    # Performance (0-100)
    completion_rate = Column(Float, nullable=False, default=0.0)
    safety_score = Column(Float, nullable=False, default=100.0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Driver(id={self.id}, license='{self.license_number}', status='{self.status.value}')>"
