"""
Trip Lifecycle Controller.

Owns every change to Trip.status and the vehicle/driver status changes that
go with it:

    Draft ──dispatch──> Dispatched ──complete──> Completed
      │                     │
      └──────cancel─────────┴──────cancel──────> Cancelled

Completed and Cancelled are terminal. Each transition loads the trip, its
vehicle and its driver with row locks, applies all mutations, writes the
audit entry and commits once. Nothing is saved if any step fails.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.core.dependencies import AuthSession
from fleetflow.app.core.exceptions import (
    BusinessRuleError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    TransitionFailedError,
    TripRuleViolationError,
)
from fleetflow.app.core.guards import TRIP_OPERATORS
from fleetflow.app.db.session import unit_of_work
from fleetflow.app.domain.trips import rules
from fleetflow.app.domain.trips.rules import check_trip_assignment
from fleetflow.app.models.driver import Driver
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.fleet_enums import DriverStatus, VehicleStatus
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.trip_enums import TripStatus
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.services.audit import AuditAction, log_event
from fleetflow.app.services.entity_store import EntityStore

logger = logging.getLogger("fleetflow.trips")


ALLOWED_TRANSITIONS: Dict[TripStatus, FrozenSet[TripStatus]] = {
    TripStatus.DRAFT: frozenset({TripStatus.DISPATCHED, TripStatus.CANCELLED}),
    TripStatus.DISPATCHED: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

TRANSITION_AUDIT_ACTIONS = {
    TripStatus.DISPATCHED: AuditAction.TRIP_DISPATCHED,
    TripStatus.COMPLETED: AuditAction.TRIP_COMPLETED,
    TripStatus.CANCELLED: AuditAction.TRIP_CANCELLED,
}

# Fields a Draft trip may change after creation
EDITABLE_DRAFT_FIELDS = (
    "vehicle_id", "driver_id", "cargo_weight", "origin",
    "destination", "estimated_distance", "revenue",
)


def can_transition(current: TripStatus, target: TripStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


@dataclass
class TransitionResult:
    """Outcome of a successful transition."""
    trip: Trip
    vehicle: Vehicle
    driver: Driver
    previous_status: TripStatus
    resources_released: bool = False

    @property
    def status(self) -> TripStatus:
        return self.trip.status


Mutation = Callable[[Trip, Vehicle, Driver], bool]


class TripLifecycle:
    """
    Trip state machine bound to one database session.

    Usage:
        lifecycle = TripLifecycle(db)
        trip = await lifecycle.create_draft(payload, actor=session)
        result = await lifecycle.dispatch(trip.id, actor=session)
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.clock = clock or (lambda: rules.utc_now())
        self.trips = EntityStore(db, Trip, "Trip")
        self.vehicles = EntityStore(db, Vehicle, "Vehicle")
        self.drivers = EntityStore(db, Driver, "Driver")

    def today(self) -> date:
        return self.clock().date()

    # --- Draft management ---

    async def create_draft(self, fields: Dict[str, Any], actor: AuthSession) -> Trip:
        """
        Validate and save a new Draft trip.

        Raises:
            ResourceNotFoundError: vehicle or driver does not exist
            TripRuleViolationError: any assignment rule fails (nothing saved)
        """
        self._authorize(actor)

        async with unit_of_work(self.db):
            vehicle = await self.vehicles.get_or_404(fields["vehicle_id"], lock=True)
            driver = await self.drivers.get_or_404(fields["driver_id"], lock=True)
            self._enforce_rules(vehicle, driver, fields["cargo_weight"])

            trip = await self.trips.create({
                **fields,
                "status": TripStatus.DRAFT,
                "created_by": actor.user_id,
                "actual_distance": None,
            })
            await log_event(
                self.db,
                action=AuditAction.TRIP_CREATED,
                actor_id=actor.user_id,
                actor_email=actor.email,
                entity_type="trip",
                entity_id=trip.id,
                metadata={"vehicle_id": vehicle.id, "driver_id": driver.id, "cargo_weight": trip.cargo_weight},
                commit=False,
            )

        await self.db.refresh(trip)
        logger.info("Trip %s created as Draft by user %s", trip.id, actor.user_id)
        return trip

    async def update_draft(self, trip_id: int, changes: Dict[str, Any], actor: AuthSession) -> Trip:
        """
        Edit a Draft trip and re-run the assignment rules on the result.

        Raises:
            InvalidTransitionError: the trip is no longer a Draft
            TripRuleViolationError: the edited trip breaks a rule
        """
        self._authorize(actor)
        changes = {name: value for name, value in changes.items() if name in EDITABLE_DRAFT_FIELDS}

        async with unit_of_work(self.db):
            trip = await self.trips.get_or_404(trip_id, lock=True)
            if trip.status != TripStatus.DRAFT:
                raise InvalidTransitionError(
                    trip.status.value,
                    trip.status.value,
                    reason=f"Only Draft trips can be edited, current status: {trip.status.value}",
                )

            vehicle = await self.vehicles.get_or_404(changes.get("vehicle_id", trip.vehicle_id), lock=True)
            driver = await self.drivers.get_or_404(changes.get("driver_id", trip.driver_id), lock=True)
            self._enforce_rules(vehicle, driver, changes.get("cargo_weight", trip.cargo_weight))

            await self.trips.update(trip, changes)
            await log_event(
                self.db,
                action=AuditAction.TRIP_UPDATED,
                actor_id=actor.user_id,
                actor_email=actor.email,
                entity_type="trip",
                entity_id=trip.id,
                metadata={"updated_fields": sorted(changes)},
                commit=False,
            )

        await self.db.refresh(trip)
        return trip

    async def delete(self, trip_id: int, actor: AuthSession) -> None:
        """
        Delete a Draft or finished trip.

        A Dispatched trip still holds its vehicle and driver and has to be
        cancelled first. Expenses pointing at the trip are detached.
        """
        self._authorize(actor)

        async with unit_of_work(self.db):
            trip = await self.trips.get_or_404(trip_id, lock=True)
            if trip.status == TripStatus.DISPATCHED:
                raise BusinessRuleError(
                    "Dispatched trips cannot be deleted; cancel the trip first",
                    details={"trip_id": trip.id, "status": trip.status.value},
                )

            await self.db.execute(
                update(Expense).where(Expense.trip_id == trip.id).values(trip_id=None)
            )
            await log_event(
                self.db,
                action=AuditAction.TRIP_DELETED,
                actor_id=actor.user_id,
                actor_email=actor.email,
                entity_type="trip",
                entity_id=trip.id,
                metadata={"status": trip.status.value},
                commit=False,
            )
            await self.trips.delete(trip)

    # --- Transitions ---

    async def dispatch(self, trip_id: int, actor: AuthSession) -> TransitionResult:
        """
        Draft -> Dispatched.

        The assignment rules are checked again because the vehicle or driver
        may have changed since the Draft was saved.
        """
        def mutate(trip: Trip, vehicle: Vehicle, driver: Driver) -> bool:
            self._enforce_rules(vehicle, driver, trip.cargo_weight)
            trip.dispatched_at = self.clock()
            vehicle.status = VehicleStatus.ON_TRIP
            driver.status = DriverStatus.ON_DUTY
            return False

        return await self._apply(trip_id, TripStatus.DISPATCHED, actor, mutate)

    async def complete(
        self,
        trip_id: int,
        actual_distance: Optional[float],
        actor: AuthSession,
        revenue: Optional[float] = None,
    ) -> TransitionResult:
        """
        Dispatched -> Completed.

        Adds the actual distance to the vehicle odometer and releases the
        vehicle and driver.
        """
        if actual_distance is None:
            raise BusinessRuleError("actual_distance is required to complete a trip")
        actual_distance = float(actual_distance)
        if not math.isfinite(actual_distance) or actual_distance < 0:
            raise BusinessRuleError(
                "actual_distance must be a non-negative number",
                details={"actual_distance": str(actual_distance)},
            )
        if revenue is not None and (not math.isfinite(revenue) or revenue < 0):
            raise BusinessRuleError("revenue must be a non-negative number")

        def mutate(trip: Trip, vehicle: Vehicle, driver: Driver) -> bool:
            trip.actual_distance = actual_distance
            trip.completed_at = self.clock()
            if revenue is not None:
                trip.revenue = revenue
            vehicle.odometer = (vehicle.odometer or 0.0) + actual_distance
            vehicle.status = VehicleStatus.AVAILABLE
            driver.status = DriverStatus.OFF_DUTY
            return True

        return await self._apply(
            trip_id, TripStatus.COMPLETED, actor, mutate,
            metadata={"actual_distance": actual_distance},
        )

    async def cancel(self, trip_id: int, actor: AuthSession) -> TransitionResult:
        """
        Draft|Dispatched -> Cancelled.

        Only a Dispatched trip holds its vehicle and driver, so only then
        are they released.
        """
        def mutate(trip: Trip, vehicle: Vehicle, driver: Driver) -> bool:
            trip.cancelled_at = self.clock()
            if trip.status != TripStatus.DISPATCHED:
                return False
            vehicle.status = VehicleStatus.AVAILABLE
            driver.status = DriverStatus.OFF_DUTY
            return True

        return await self._apply(trip_id, TripStatus.CANCELLED, actor, mutate)

    async def transition(
        self,
        trip_id: int,
        target: TripStatus,
        actor: AuthSession,
        actual_distance: Optional[float] = None,
        revenue: Optional[float] = None,
    ) -> TransitionResult:
        """Move a trip to `target` using the matching transition."""
        if target == TripStatus.DISPATCHED:
            return await self.dispatch(trip_id, actor)
        if target == TripStatus.COMPLETED:
            return await self.complete(trip_id, actual_distance, actor, revenue=revenue)
        if target == TripStatus.CANCELLED:
            return await self.cancel(trip_id, actor)

        trip = await self.trips.get_or_404(trip_id)
        raise InvalidTransitionError(trip.status.value, target.value)

    # --- Internals ---

    def _authorize(self, actor: AuthSession) -> None:
        if not actor.has_role(*TRIP_OPERATORS):
            raise InsufficientPermissionsError(
                "Only Dispatchers and Managers can manage trips",
                details={"role": actor.role.value},
            )

    def _enforce_rules(self, vehicle: Vehicle, driver: Driver, cargo_weight: float) -> None:
        violations = check_trip_assignment(vehicle, driver, cargo_weight, self.today())
        if violations:
            raise TripRuleViolationError(violations)

    async def _load_locked(self, trip_id: int) -> Tuple[Trip, Vehicle, Driver]:
        trip = await self.trips.get_or_404(trip_id, lock=True)
        vehicle = await self.vehicles.get_or_404(trip.vehicle_id, lock=True)
        driver = await self.drivers.get_or_404(trip.driver_id, lock=True)
        return trip, vehicle, driver

    async def _apply(
        self,
        trip_id: int,
        target: TripStatus,
        actor: AuthSession,
        mutate: Mutation,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TransitionResult:
        self._authorize(actor)

        try:
            async with unit_of_work(self.db):
                trip, vehicle, driver = await self._load_locked(trip_id)
                previous = trip.status

                if not can_transition(previous, target):
                    raise InvalidTransitionError(
                        previous.value,
                        target.value,
                        reason=self._transition_refusal(previous, target),
                    )

                released = mutate(trip, vehicle, driver)
                trip.status = target

                await log_event(
                    self.db,
                    action=TRANSITION_AUDIT_ACTIONS[target],
                    actor_id=actor.user_id,
                    actor_email=actor.email,
                    entity_type="trip",
                    entity_id=trip.id,
                    metadata={
                        "from": previous.value,
                        "to": target.value,
                        "vehicle_id": vehicle.id,
                        "driver_id": driver.id,
                        "resources_released": released,
                        **(metadata or {}),
                    },
                    commit=False,
                )
        except SQLAlchemyError as exc:
            logger.error("Trip %s transition to %s failed: %s", trip_id, target.value, exc)
            raise TransitionFailedError(trip_id, target.value) from exc

        logger.info(
            "Trip %s moved %s -> %s by user %s",
            trip.id, previous.value, target.value, actor.user_id,
        )
        for entity in (trip, vehicle, driver):
            await self.db.refresh(entity)
        return TransitionResult(
            trip=trip,
            vehicle=vehicle,
            driver=driver,
            previous_status=previous,
            resources_released=released,
        )

    @staticmethod
    def _transition_refusal(current: TripStatus, target: TripStatus) -> str:
        if current.is_terminal:
            return f"Trip is already {current.value} and cannot change status"
        if current == target:
            return f"Trip is already {current.value}"
        return f"Cannot move trip from {current.value} to {target.value}"
