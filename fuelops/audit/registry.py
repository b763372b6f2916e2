"""Closed set of tracked entity types and their storage adapters"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Tuple, Type
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.audit.context import Actor
from fuelops.audit.errors import UnknownEntityType
from fuelops.audit.snapshot import Snapshot, snapshot, tracked_fields
from fuelops.models.customer import Customer
from fuelops.models.delivery import DeliveryCost


class EntityType(str, enum.Enum):
    """Tags stored in audit_log.entity_type"""
    CUSTOMER = "customers"
    DELIVERY_COST = "delivery_cost"


@dataclass(frozen=True)
class TrackedEntity:
    """A model registered for auditing together with its snapshot schema"""
    entity_type: EntityType
    model: Type
    exclude: Tuple[str, ...] = ()
    fields: Tuple[str, ...] = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "fields", tracked_fields(self.model, self.exclude))

    def snapshot(self, entity) -> Snapshot:
        return snapshot(entity, self.fields)


REGISTRY: Dict[EntityType, TrackedEntity] = {
    tracked.entity_type: tracked
    for tracked in (
        TrackedEntity(EntityType.CUSTOMER, Customer),
        TrackedEntity(EntityType.DELIVERY_COST, DeliveryCost),
    )
}


def get_tracked(entity_type) -> TrackedEntity:
    """Look up a registered type by enum member or tag string"""
    try:
        return REGISTRY[EntityType(entity_type)]
    except ValueError:
        raise UnknownEntityType(f"Unknown entity type: {entity_type}") from None


class EntityRepository:
    """Reads and writes rows of one tracked type inside the caller's session

    Writes only stage changes and flush; committing is the caller's business.
    """

    def __init__(self, db: AsyncSession, tracked: TrackedEntity):
        self.db = db
        self.tracked = tracked
        self.model = tracked.model

    async def read(
        self,
        entity_id: UUID,
        include_deleted: bool = False,
        for_update: bool = False,
    ):
        query = select(self.model).where(self.model.id == entity_id)
        if not include_deleted:
            query = query.where(self.model.deleted_at.is_(None))
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    def _tracked_only(self, values: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(values) - set(self.tracked.fields)
        if unknown:
            raise ValueError(
                f"Not writable on {self.tracked.entity_type.value}: {', '.join(sorted(unknown))}"
            )
        return values

    async def insert(self, values: Dict[str, Any], actor: Actor):
        entity = self.model(**self._tracked_only(values))
        entity.created_by_id = actor.id
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def write(self, entity, patch: Dict[str, Any], actor: Actor):
        for name, value in self._tracked_only(patch).items():
            setattr(entity, name, value)
        entity.updated_at = datetime.utcnow()
        entity.updated_by_id = actor.id
        await self.db.flush()
        return entity

    async def soft_delete(self, entity, actor: Actor):
        entity.deleted_at = datetime.utcnow()
        entity.deleted_by_id = actor.id
        await self.db.flush()
        return entity

    async def restore(self, entity, actor: Actor):
        entity.deleted_at = None
        entity.deleted_by_id = None
        entity.updated_at = datetime.utcnow()
        entity.updated_by_id = actor.id
        await self.db.flush()
        return entity


def repository_for(db: AsyncSession, entity_type) -> EntityRepository:
    return EntityRepository(db, get_tracked(entity_type))
