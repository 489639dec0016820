"""
Vehicle Registry API Endpoints.

Every role can browse the fleet; only Managers change it. Vehicle status is
never written directly here except by retirement: trips and maintenance
logs drive it.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import List, Optional

from fleetflow.app.db.session import get_db, unit_of_work
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.maintenance_log import MaintenanceLog
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.fleet_enums import VehicleStatus
from fleetflow.app.schemas.vehicle import VehicleCreate, VehicleUpdate, VehicleResponse
from fleetflow.app.core.dependencies import AuthSession
from fleetflow.app.core.exceptions import BusinessRuleError
from fleetflow.app.core.guards import require_role, ALL_ROLES, FLEET_MANAGERS
from fleetflow.app.services.audit import log_event, AuditAction
from fleetflow.app.services.entity_store import EntityStore

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


def vehicle_store(db: AsyncSession) -> EntityStore:
    return EntityStore(db, Vehicle, "Vehicle", unique_fields=("license_plate",))


@router.get("", response_model=List[VehicleResponse])
async def list_vehicles(
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    vehicle_type: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    current_user: AuthSession = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """List vehicles, newest first, with optional status/type/region filters."""
    criteria = []
    if status_filter:
        criteria.append(Vehicle.status == status_filter)
    if vehicle_type:
        criteria.append(Vehicle.vehicle_type == vehicle_type)
    if region:
        criteria.append(Vehicle.region == region)
    return await vehicle_store(db).list(*criteria)


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: AuthSession = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return await vehicle_store(db).get_or_404(vehicle_id)


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Register a vehicle (Manager only). New vehicles start Available."""
    vehicles = vehicle_store(db)

    async with unit_of_work(db):
        vehicle = await vehicles.create({
            **vehicle_data.model_dump(),
            "status": VehicleStatus.AVAILABLE,
        })
        await log_event(
            db,
            action=AuditAction.VEHICLE_CREATED,
            actor_id=current_user.user_id,
            actor_email=current_user.email,
            entity_type="vehicle",
            entity_id=vehicle.id,
            metadata={"license_plate": vehicle.license_plate},
            commit=False,
        )

    await db.refresh(vehicle)
    return vehicle


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_data: VehicleUpdate,
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Update vehicle details (Manager only).

    The odometer can only move forward.
    """
    vehicles = vehicle_store(db)
    changes = vehicle_data.model_dump(exclude_unset=True, exclude_none=True)

    async with unit_of_work(db):
        vehicle = await vehicles.get_or_404(vehicle_id, lock=True)

        if "odometer" in changes and changes["odometer"] < vehicle.odometer:
            raise BusinessRuleError(
                "Odometer cannot be decreased",
                details={"current": vehicle.odometer, "requested": changes["odometer"]}
            )

        await vehicles.update(vehicle, changes)

    await db.refresh(vehicle)
    return vehicle


@router.post("/{vehicle_id}/retire", response_model=VehicleResponse)
async def retire_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Take a vehicle out of service for good (Manager only)."""
    vehicles = vehicle_store(db)

    async with unit_of_work(db):
        vehicle = await vehicles.get_or_404(vehicle_id, lock=True)

        if vehicle.status == VehicleStatus.RETIRED:
            raise BusinessRuleError("Vehicle is already retired")
        if vehicle.status == VehicleStatus.ON_TRIP:
            raise BusinessRuleError(
                "Cannot retire a vehicle that is on a trip",
                details={"vehicle_id": vehicle.id, "status": vehicle.status.value}
            )

        previous = vehicle.status
        vehicle.status = VehicleStatus.RETIRED
        await log_event(
            db,
            action=AuditAction.VEHICLE_RETIRED,
            actor_id=current_user.user_id,
            actor_email=current_user.email,
            entity_type="vehicle",
            entity_id=vehicle.id,
            metadata={"from": previous.value},
            commit=False,
        )

    await db.refresh(vehicle)
    return vehicle


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a vehicle (Manager only).

    Vehicles with trips, maintenance logs or expenses on record keep their
    history and should be retired instead.
    """
    vehicles = vehicle_store(db)

    async with unit_of_work(db):
        vehicle = await vehicles.get_or_404(vehicle_id, lock=True)

        if vehicle.status == VehicleStatus.ON_TRIP:
            raise BusinessRuleError("Cannot delete a vehicle that is on a trip")

        for model, label in ((Trip, "trips"), (MaintenanceLog, "maintenance logs"), (Expense, "expenses")):
            count = (await db.execute(
                select(func.count(model.id)).where(model.vehicle_id == vehicle.id)
            )).scalar() or 0
            if count:
                raise BusinessRuleError(
                    f"Vehicle has {label} on record; retire it instead",
                    details={"vehicle_id": vehicle.id, label.replace(" ", "_"): count}
                )

        await log_event(
            db,
            action=AuditAction.VEHICLE_DELETED,
            actor_id=current_user.user_id,
            actor_email=current_user.email,
            entity_type="vehicle",
            entity_id=vehicle.id,
            metadata={"license_plate": vehicle.license_plate},
            commit=False,
        )
        await vehicles.delete(vehicle)
