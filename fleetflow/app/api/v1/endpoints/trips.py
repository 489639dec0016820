"""
Trip API Endpoints.

Dispatchers and Managers create and move trips; Analysts can read them.
Every status change is delegated to TripLifecycle.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from fleetflow.app.db.session import get_db
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.models.trip_enums import TripStatus
from fleetflow.app.schemas.trip import (
    TripCreate, TripUpdate, TripComplete, TripResponse, TransitionResponse
)
from fleetflow.app.schemas.audit import AuditLogResponse
from fleetflow.app.core.dependencies import AuthSession
from fleetflow.app.core.exceptions import BusinessRuleError
from fleetflow.app.core.guards import require_role, TRIP_OPERATORS, TRIP_VIEWERS
from fleetflow.app.domain.trips.lifecycle import EDITABLE_DRAFT_FIELDS, TripLifecycle, TransitionResult
from fleetflow.app.services.audit import get_audit_trail
from fleetflow.app.services.entity_store import EntityStore

router = APIRouter(prefix="/trips", tags=["Trips"])

# Fields a status change may carry alongside the new status
COMPLETION_FIELDS = ("actual_distance", "revenue")


def to_transition_response(result: TransitionResult) -> TransitionResponse:
    return TransitionResponse(
        trip=TripResponse.model_validate(result.trip),
        previous_status=result.previous_status,
        resources_released=result.resources_released,
        vehicle_status=result.vehicle.status.value,
        driver_status=result.driver.status.value,
    )


@router.get("", response_model=List[TripResponse])
async def list_trips(
    status_filter: Optional[TripStatus] = Query(None, alias="status"),
    vehicle_id: Optional[int] = Query(None),
    driver_id: Optional[int] = Query(None),
    vehicle_type: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
    current_user: AuthSession = Depends(require_role(TRIP_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    """List trips, newest first."""
    criteria = []
    if status_filter:
        criteria.append(Trip.status == status_filter)
    if vehicle_id is not None:
        criteria.append(Trip.vehicle_id == vehicle_id)
    if driver_id is not None:
        criteria.append(Trip.driver_id == driver_id)
    if vehicle_type or region:
        vehicle_ids = select(Vehicle.id)
        if vehicle_type:
            vehicle_ids = vehicle_ids.where(Vehicle.vehicle_type == vehicle_type)
        if region:
            vehicle_ids = vehicle_ids.where(Vehicle.region == region)
        criteria.append(Trip.vehicle_id.in_(vehicle_ids))
    return await EntityStore(db, Trip, "Trip").list(*criteria)


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(TRIP_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    return await EntityStore(db, Trip, "Trip").get_or_404(trip_id)


@router.get("/{trip_id}/history", response_model=List[AuditLogResponse])
async def get_trip_history(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(TRIP_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail of a trip, most recent first."""
    await EntityStore(db, Trip, "Trip").get_or_404(trip_id)
    return await get_audit_trail(db, entity_type="trip", entity_id=trip_id)


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: AuthSession = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a Draft trip.

    Validates:
    - Cargo fits the vehicle capacity
    - Vehicle is Available
    - Driver license is valid and the driver is neither Suspended nor On Duty

    Every failed rule is reported; nothing is saved unless all pass.
    """
    return await TripLifecycle(db).create_draft(trip_data.model_dump(), actor=current_user)


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_data: TripUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """
    Edit a Draft trip, or change its status.

    With `status` in the body the call is a transition: Dispatched,
    Completed (needs `actual_distance`, may set `revenue`) or Cancelled.
    A body that mixes a transition with edits is rejected, as is any
    field the requested operation would not use.
    """
    lifecycle = TripLifecycle(db)
    changes = trip_data.model_dump(exclude_unset=True, exclude_none=True)
    changes.pop("status", None)

    if trip_data.status is not None:
        accepted = COMPLETION_FIELDS if trip_data.status == TripStatus.COMPLETED else ()
        unexpected = sorted(name for name in changes if name not in accepted)
        if unexpected:
            raise BusinessRuleError(
                f"Fields not accepted when moving a trip to {trip_data.status.value}: {', '.join(unexpected)}",
                details={"target_status": trip_data.status.value, "fields": unexpected}
            )
        result = await lifecycle.transition(
            trip_id,
            trip_data.status,
            actor=current_user,
            actual_distance=trip_data.actual_distance,
            revenue=trip_data.revenue,
        )
        return result.trip

    unexpected = sorted(name for name in changes if name not in EDITABLE_DRAFT_FIELDS)
    if unexpected:
        raise BusinessRuleError(
            f"Fields only accepted with a status change: {', '.join(unexpected)}",
            details={"fields": unexpected}
        )
    return await lifecycle.update_draft(trip_id, changes, actor=current_user)


@router.post("/{trip_id}/dispatch", response_model=TransitionResponse)
async def dispatch_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """Dispatch a Draft trip: vehicle goes On Trip, driver goes On Duty."""
    result = await TripLifecycle(db).dispatch(trip_id, actor=current_user)
    return to_transition_response(result)


@router.post("/{trip_id}/complete", response_model=TransitionResponse)
async def complete_trip(
    body: TripComplete,
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """Complete a Dispatched trip and add the distance to the odometer."""
    result = await TripLifecycle(db).complete(
        trip_id, body.actual_distance, actor=current_user, revenue=body.revenue
    )
    return to_transition_response(result)


@router.post("/{trip_id}/cancel", response_model=TransitionResponse)
async def cancel_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """Cancel a Draft or Dispatched trip, releasing what a Dispatched trip held."""
    result = await TripLifecycle(db).cancel(trip_id, actor=current_user)
    return to_transition_response(result)


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(TRIP_OPERATORS)),
    db: AsyncSession = Depends(get_db)
):
    """Delete a Draft, Completed or Cancelled trip."""
    await TripLifecycle(db).delete(trip_id, actor=current_user)
