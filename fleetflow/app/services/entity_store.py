"""
Generic record store over one ORM model.

Every entity router goes through an EntityStore for plain CRUD. The store
only flushes; committing is left to the caller so several store calls can
share one unit of work.
"""

from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetflow.app.core.exceptions import BusinessRuleError, DuplicateResourceError, ResourceNotFoundError
from fleetflow.app.db.session import Base

ModelT = TypeVar("ModelT", bound=Base)

# Never settable through create/update payloads
PROTECTED_FIELDS = {"id", "created_at", "updated_at"}


class EntityStore(Generic[ModelT]):
    """
    CRUD access to a single table.

    Usage:
        vehicles = EntityStore(db, Vehicle, "Vehicle", unique_fields=("license_plate",))
        vehicle = await vehicles.get_or_404(vehicle_id)
        await vehicles.update(vehicle, {"odometer": 1200})
    """

    def __init__(
        self,
        db: AsyncSession,
        model: Type[ModelT],
        resource_name: str,
        unique_fields: Iterable[str] = (),
    ):
        self.db = db
        self.model = model
        self.resource_name = resource_name
        self.unique_fields = tuple(unique_fields)

    async def get(self, entity_id: int, lock: bool = False) -> Optional[ModelT]:
        """Fetch one record by id. With lock=True the row is selected FOR UPDATE."""
        query = select(self.model).where(self.model.id == entity_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_404(self, entity_id: int, lock: bool = False) -> ModelT:
        entity = await self.get(entity_id, lock=lock)
        if entity is None:
            raise ResourceNotFoundError(self.resource_name, entity_id)
        return entity

    async def list(self, *criteria, order_by=None) -> List[ModelT]:
        """List records matching the given SQLAlchemy criteria, newest first by default."""
        query = select(self.model).where(*criteria)
        if order_by is None:
            order_by = (self.model.id.desc(),)
        elif not isinstance(order_by, (list, tuple)):
            order_by = (order_by,)
        result = await self.db.execute(query.order_by(*order_by))
        return list(result.scalars().all())

    async def create(self, fields: Dict[str, Any]) -> ModelT:
        values = self._clean(fields)
        await self._ensure_unique(values)

        entity = self.model(**values)
        self.db.add(entity)
        await self._flush()
        return entity

    async def update(self, entity: ModelT, fields: Dict[str, Any]) -> ModelT:
        """Apply a partial update to an already loaded record."""
        values = self._clean(fields)
        changed = {
            name: value for name, value in values.items()
            if getattr(entity, name) != value
        }
        await self._ensure_unique(changed, exclude_id=entity.id)

        for name, value in changed.items():
            setattr(entity, name, value)
        await self._flush()
        return entity

    async def delete(self, entity: ModelT) -> None:
        await self.db.delete(entity)
        await self._flush()

    def _clean(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {
            name: value for name, value in fields.items()
            if name not in PROTECTED_FIELDS and hasattr(self.model, name)
        }

    async def _ensure_unique(self, values: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
        for field_name in self.unique_fields:
            if field_name not in values:
                continue
            column = getattr(self.model, field_name)
            query = select(self.model.id).where(column == values[field_name])
            if exclude_id is not None:
                query = query.where(self.model.id != exclude_id)
            if (await self.db.execute(query.limit(1))).scalar_one_or_none() is not None:
                raise DuplicateResourceError(self.resource_name, field_name)

    async def _flush(self) -> None:
        # Races past _ensure_unique, and FK violations, end up here
        try:
            await self.db.flush()
        except IntegrityError as exc:
            await self.db.rollback()
            raise BusinessRuleError(
                f"{self.resource_name} violates a data constraint",
                details={"reason": str(exc.orig)},
            ) from exc
