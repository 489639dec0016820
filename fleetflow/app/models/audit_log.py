"""
Audit Log Database Model.

Tracks authentication events and every state change that moves vehicles
or drivers between statuses.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from fleetflow.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / USER_REGISTERED / USER_VERIFIED
    - TRIP_CREATED / TRIP_DISPATCHED / TRIP_COMPLETED / TRIP_CANCELLED
    - MAINTENANCE_OPENED / MAINTENANCE_CLOSED
    - VEHICLE_RETIRED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for anonymous or system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Entity the action applied to
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(Integer, nullable=True, index=True)

    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, entity={self.entity_type}:{self.entity_id})>"
