"""
Driver Management API Endpoints.

Managers and Safety Officers maintain driver records. Responses always
carry the effective status, so a driver whose license has lapsed shows as
Suspended even before anyone edits the record.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import date
from typing import List, Optional

from fleetflow.app.db.session import get_db, unit_of_work
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.fleet_enums import DriverStatus
from fleetflow.app.schemas.driver import DriverCreate, DriverUpdate, DriverResponse
from fleetflow.app.core.dependencies import AuthSession
from fleetflow.app.core.exceptions import BusinessRuleError
from fleetflow.app.core.guards import require_role, ALL_ROLES, DRIVER_MANAGERS
from fleetflow.app.domain.trips.rules import effective_driver_status, license_expired, utc_today
from fleetflow.app.services.audit import log_event, AuditAction
from fleetflow.app.services.entity_store import EntityStore

router = APIRouter(prefix="/drivers", tags=["Drivers"])


def driver_store(db: AsyncSession) -> EntityStore:
    return EntityStore(db, Driver, "Driver", unique_fields=("license_number",))


def to_driver_response(driver: Driver, today: Optional[date] = None) -> DriverResponse:
    today = today or utc_today()
    return DriverResponse.model_validate(driver).model_copy(update={
        "status": effective_driver_status(driver, today),
        "license_expired": license_expired(driver, today),
    })


async def _log_driver_event(db: AsyncSession, action: str, actor: AuthSession, driver: Driver, **metadata):
    await log_event(
        db,
        action=action,
        actor_id=actor.user_id,
        actor_email=actor.email,
        entity_type="driver",
        entity_id=driver.id,
        metadata=metadata,
        commit=False,
    )


@router.get("", response_model=List[DriverResponse])
async def list_drivers(
    status_filter: Optional[DriverStatus] = Query(None, alias="status"),
    current_user: AuthSession = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """List drivers; the status filter matches the effective status."""
    today = utc_today()
    drivers = [to_driver_response(driver, today) for driver in await driver_store(db).list()]
    if status_filter:
        drivers = [driver for driver in drivers if driver.status == status_filter]
    return drivers


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: AuthSession = Depends(require_role(ALL_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    return to_driver_response(await driver_store(db).get_or_404(driver_id))


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    current_user: AuthSession = Depends(require_role(DRIVER_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Add a driver. A driver added with an expired license is stored Suspended."""
    fields = driver_data.model_dump()
    if fields["license_expiry"] < utc_today():
        fields["status"] = DriverStatus.SUSPENDED

    async with unit_of_work(db):
        driver = await driver_store(db).create(fields)
        await _log_driver_event(
            db, AuditAction.DRIVER_CREATED, current_user, driver,
            license_number=driver.license_number, status=driver.status.value,
        )

    await db.refresh(driver)
    return to_driver_response(driver)


@router.put("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_data: DriverUpdate,
    driver_id: int = Path(..., description="Driver ID"),
    current_user: AuthSession = Depends(require_role(DRIVER_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a driver.

    Status may be set to Off Duty (reinstate) or Suspended. Drivers on a
    trip keep On Duty until the trip ends.
    """
    drivers = driver_store(db)
    changes = driver_data.model_dump(exclude_unset=True, exclude_none=True)
    today = utc_today()

    async with unit_of_work(db):
        driver = await drivers.get_or_404(driver_id, lock=True)
        requested = changes.get("status")

        if driver.status == DriverStatus.ON_DUTY:
            if requested is not None:
                raise BusinessRuleError(
                    "Cannot change the status of a driver who is on a trip",
                    details={"driver_id": driver.id}
                )
        else:
            expiry = changes.get("license_expiry", driver.license_expiry)
            if expiry < today:
                if requested == DriverStatus.OFF_DUTY:
                    raise BusinessRuleError(
                        "Cannot reinstate a driver with an expired license",
                        details={"license_expiry": expiry.isoformat()}
                    )
                changes["status"] = DriverStatus.SUSPENDED

        previous = driver.status
        await drivers.update(driver, changes)

        if previous != DriverStatus.SUSPENDED and driver.status == DriverStatus.SUSPENDED:
            await _log_driver_event(
                db, AuditAction.DRIVER_SUSPENDED, current_user, driver,
                reason="license expired" if driver.license_expiry < today else "manual",
            )

    await db.refresh(driver)
    return to_driver_response(driver, today)


@router.delete("/{driver_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_driver(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: AuthSession = Depends(require_role(DRIVER_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a driver who is not on duty and has no trips on record."""
    drivers = driver_store(db)

    async with unit_of_work(db):
        driver = await drivers.get_or_404(driver_id, lock=True)

        if driver.status == DriverStatus.ON_DUTY:
            raise BusinessRuleError("Cannot delete a driver who is on duty")

        trips = (await db.execute(
            select(func.count(Trip.id)).where(Trip.driver_id == driver.id)
        )).scalar() or 0
        if trips:
            raise BusinessRuleError(
                "Driver has trips on record; suspend the driver instead",
                details={"driver_id": driver.id, "trips": trips}
            )

        await _log_driver_event(db, AuditAction.DRIVER_DELETED, current_user, driver)
        await drivers.delete(driver)
