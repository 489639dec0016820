"""
Maintenance Log API Endpoints.

An Open log keeps its vehicle In Shop. The vehicle returns to Available
once its last Open log is closed or deleted. Log and vehicle changes
commit together.
"""

import logging

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List

from fleetflow.app.db.session import get_db, unit_of_work
from fleetflow.app.models.maintenance_log import MaintenanceLog
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.fleet_enums import MaintenanceStatus, VehicleStatus
from fleetflow.app.schemas.maintenance import MaintenanceCreate, MaintenanceUpdate, MaintenanceResponse
from fleetflow.app.core.dependencies import AuthSession
from fleetflow.app.core.exceptions import BusinessRuleError
from fleetflow.app.core.guards import require_role, FINANCE_VIEWERS, FLEET_MANAGERS
from fleetflow.app.services.audit import log_event, AuditAction
from fleetflow.app.services.entity_store import EntityStore

logger = logging.getLogger("fleetflow.maintenance")

router = APIRouter(prefix="/maintenance", tags=["Maintenance"])


async def release_vehicle_if_serviced(db: AsyncSession, vehicle: Vehicle, closing_log_id: int) -> bool:
    """Put an In Shop vehicle back to Available when no other log is Open."""
    if vehicle.status != VehicleStatus.IN_SHOP:
        return False

    still_open = (await db.execute(
        select(func.count(MaintenanceLog.id)).where(
            MaintenanceLog.vehicle_id == vehicle.id,
            MaintenanceLog.status == MaintenanceStatus.OPEN,
            MaintenanceLog.id != closing_log_id,
        )
    )).scalar() or 0
    if still_open:
        return False

    vehicle.status = VehicleStatus.AVAILABLE
    return True


async def _log_maintenance_event(db: AsyncSession, action: str, actor: AuthSession, log: MaintenanceLog, **metadata):
    await log_event(
        db,
        action=action,
        actor_id=actor.user_id,
        actor_email=actor.email,
        entity_type="maintenance",
        entity_id=log.id,
        metadata={"vehicle_id": log.vehicle_id, **metadata},
        commit=False,
    )


@router.get("", response_model=List[MaintenanceResponse])
async def list_maintenance_logs(
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    return await EntityStore(db, MaintenanceLog, "Maintenance log").list()


@router.get("/vehicle/{vehicle_id}", response_model=List[MaintenanceResponse])
async def list_vehicle_maintenance_logs(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    """Service history of one vehicle, newest first."""
    await EntityStore(db, Vehicle, "Vehicle").get_or_404(vehicle_id)
    return await EntityStore(db, MaintenanceLog, "Maintenance log").list(
        MaintenanceLog.vehicle_id == vehicle_id
    )


@router.get("/{log_id}", response_model=MaintenanceResponse)
async def get_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    return await EntityStore(db, MaintenanceLog, "Maintenance log").get_or_404(log_id)


@router.post("", response_model=MaintenanceResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance_log(
    log_data: MaintenanceCreate,
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Open a maintenance log and move the vehicle In Shop.

    Vehicles on a trip or retired cannot be sent to the shop.
    """
    logs = EntityStore(db, MaintenanceLog, "Maintenance log")

    async with unit_of_work(db):
        vehicle = await EntityStore(db, Vehicle, "Vehicle").get_or_404(log_data.vehicle_id, lock=True)

        if vehicle.status in (VehicleStatus.ON_TRIP, VehicleStatus.RETIRED):
            raise BusinessRuleError(
                f"Cannot open maintenance for a vehicle that is {vehicle.status.value.lower()}",
                details={"vehicle_id": vehicle.id, "status": vehicle.status.value}
            )

        log = await logs.create({**log_data.model_dump(), "status": MaintenanceStatus.OPEN})
        previous = vehicle.status
        vehicle.status = VehicleStatus.IN_SHOP
        await _log_maintenance_event(
            db, AuditAction.MAINTENANCE_OPENED, current_user, log,
            service_type=log.service_type, vehicle_from=previous.value,
        )

    logger.info("Maintenance log %s opened, vehicle %s In Shop", log.id, vehicle.id)
    await db.refresh(log)
    return log


@router.put("/{log_id}", response_model=MaintenanceResponse)
async def update_maintenance_log(
    log_data: MaintenanceUpdate,
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Edit log details. Status changes go through /close."""
    logs = EntityStore(db, MaintenanceLog, "Maintenance log")

    async with unit_of_work(db):
        log = await logs.get_or_404(log_id, lock=True)
        await logs.update(log, log_data.model_dump(exclude_unset=True, exclude_none=True))

    await db.refresh(log)
    return log


@router.post("/{log_id}/close", response_model=MaintenanceResponse)
async def close_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Close an Open log; the vehicle leaves the shop with its last open log."""
    logs = EntityStore(db, MaintenanceLog, "Maintenance log")

    async with unit_of_work(db):
        log = await logs.get_or_404(log_id, lock=True)
        if log.status == MaintenanceStatus.CLOSED:
            raise BusinessRuleError("Maintenance log is already closed", details={"log_id": log.id})

        vehicle = await EntityStore(db, Vehicle, "Vehicle").get_or_404(log.vehicle_id, lock=True)
        log.status = MaintenanceStatus.CLOSED
        released = await release_vehicle_if_serviced(db, vehicle, log.id)
        await _log_maintenance_event(
            db, AuditAction.MAINTENANCE_CLOSED, current_user, log, vehicle_released=released,
        )

    logger.info("Maintenance log %s closed, vehicle %s released=%s", log.id, vehicle.id, released)
    await db.refresh(log)
    return log


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_maintenance_log(
    log_id: int = Path(..., description="Maintenance log ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a log. Deleting an Open log releases the vehicle like closing it."""
    logs = EntityStore(db, MaintenanceLog, "Maintenance log")

    async with unit_of_work(db):
        log = await logs.get_or_404(log_id, lock=True)
        released = False
        if log.status == MaintenanceStatus.OPEN:
            vehicle = await EntityStore(db, Vehicle, "Vehicle").get_or_404(log.vehicle_id, lock=True)
            released = await release_vehicle_if_serviced(db, vehicle, log.id)
        await _log_maintenance_event(
            db, AuditAction.MAINTENANCE_DELETED, current_user, log,
            status=log.status.value, vehicle_released=released,
        )
        await logs.delete(log)

    logger.info("Maintenance log %s deleted, vehicle released=%s", log_id, released)
