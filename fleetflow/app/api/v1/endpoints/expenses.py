"""
Expense API Endpoints.

Fuel and miscellaneous costs per vehicle, optionally tied to a trip.
Expenses never change other records.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List

from fleetflow.app.db.session import get_db, unit_of_work
from fleetflow.app.models.expense import Expense
from fleetflow.app.models.trip import Trip
from fleetflow.app.models.vehicle import Vehicle
from fleetflow.app.schemas.expense import ExpenseCreate, ExpenseUpdate, ExpenseResponse, ExpenseSummary
from fleetflow.app.core.dependencies import AuthSession
from fleetflow.app.core.exceptions import BusinessRuleError
from fleetflow.app.core.guards import require_role, FINANCE_VIEWERS, FLEET_MANAGERS
from fleetflow.app.services.analytics import AnalyticsService
from fleetflow.app.services.entity_store import EntityStore

router = APIRouter(prefix="/expenses", tags=["Expenses"])


async def check_references(db: AsyncSession, vehicle_id: int, trip_id: int = None) -> None:
    """Vehicle (and trip) must exist, and the trip must belong to the vehicle."""
    await EntityStore(db, Vehicle, "Vehicle").get_or_404(vehicle_id)
    if trip_id is None:
        return

    trip = await EntityStore(db, Trip, "Trip").get_or_404(trip_id)
    if trip.vehicle_id != vehicle_id:
        raise BusinessRuleError(
            "Trip does not belong to this vehicle",
            details={"trip_id": trip.id, "trip_vehicle_id": trip.vehicle_id, "vehicle_id": vehicle_id}
        )


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    return await EntityStore(db, Expense, "Expense").list()


@router.get("/summary", response_model=ExpenseSummary)
async def get_expense_summary(
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    """Fuel, misc and total cost, plus average cost per km."""
    return await AnalyticsService.get_expense_summary(db)


@router.get("/vehicle/{vehicle_id}", response_model=List[ExpenseResponse])
async def list_vehicle_expenses(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    await EntityStore(db, Vehicle, "Vehicle").get_or_404(vehicle_id)
    return await EntityStore(db, Expense, "Expense").list(Expense.vehicle_id == vehicle_id)


@router.get("/trip/{trip_id}", response_model=List[ExpenseResponse])
async def list_trip_expenses(
    trip_id: int = Path(..., description="Trip ID"),
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    await EntityStore(db, Trip, "Trip").get_or_404(trip_id)
    return await EntityStore(db, Expense, "Expense").list(Expense.trip_id == trip_id)


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: int = Path(..., description="Expense ID"),
    current_user: AuthSession = Depends(require_role(FINANCE_VIEWERS)),
    db: AsyncSession = Depends(get_db)
):
    return await EntityStore(db, Expense, "Expense").get_or_404(expense_id)


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    async with unit_of_work(db):
        await check_references(db, expense_data.vehicle_id, expense_data.trip_id)
        expense = await EntityStore(db, Expense, "Expense").create(expense_data.model_dump())

    await db.refresh(expense)
    return expense


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_data: ExpenseUpdate,
    expense_id: int = Path(..., description="Expense ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    expenses = EntityStore(db, Expense, "Expense")
    changes: Dict[str, Any] = expense_data.model_dump(exclude_unset=True)
    # trip_id may be cleared with an explicit null; other fields ignore nulls
    changes = {name: value for name, value in changes.items() if value is not None or name == "trip_id"}

    async with unit_of_work(db):
        expense = await expenses.get_or_404(expense_id, lock=True)
        await check_references(
            db,
            changes.get("vehicle_id", expense.vehicle_id),
            changes.get("trip_id", expense.trip_id),
        )
        await expenses.update(expense, changes)

    await db.refresh(expense)
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: int = Path(..., description="Expense ID"),
    current_user: AuthSession = Depends(require_role(FLEET_MANAGERS)),
    db: AsyncSession = Depends(get_db)
):
    expenses = EntityStore(db, Expense, "Expense")

    async with unit_of_work(db):
        expense = await expenses.get_or_404(expense_id)
        await expenses.delete(expense)
