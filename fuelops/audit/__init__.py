"""Audit & rollback engine

Entry points used by the rest of the service::

    await record_mutation(db, entity_type, entity_id, operation, old, new, actor)
    await get_history(db, entity_type, entity_id)
    await rollback(db, audit_log_id, actor)
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.audit.context import Actor, Origin, SYSTEM_ACTOR
from fuelops.audit.diff import FieldChange, diff, expand
from fuelops.audit.errors import (
    EntityNotFound,
    InvalidMutation,
    RollbackError,
    RollbackResult,
    StorageFault,
    UnknownEntityType,
)
from fuelops.audit.history import AuditHistory, HistoryEntry
from fuelops.audit.interceptor import Mutation, MutationInterceptor, atomic
from fuelops.audit.registry import EntityType, get_tracked
from fuelops.audit.rollback import RollbackEngine
from fuelops.audit.snapshot import Snapshot, snapshot
from fuelops.audit.store import AuditLogStore
from fuelops.models.audit import AuditLog, AuditOperation


async def record_mutation(
    db: AsyncSession,
    entity_type,
    entity_id: UUID,
    operation: AuditOperation,
    old: Optional[Snapshot],
    new: Optional[Snapshot],
    actor: Actor,
    commit: bool = True,
) -> AuditLog:
    """Log a mutation the caller applied itself in the same session"""
    async with atomic(db, commit):
        entry = await MutationInterceptor(db).record_mutation(
            entity_type, entity_id, operation, old, new, actor
        )
    return entry


async def get_history(
    db: AsyncSession,
    entity_type,
    entity_id: UUID,
    limit: Optional[int] = None,
) -> List[HistoryEntry]:
    return await AuditHistory(db).get_history(get_tracked(entity_type).entity_type.value, entity_id, limit)


async def rollback(db: AsyncSession, audit_log_id: UUID, actor: Actor) -> RollbackResult:
    return await RollbackEngine(db).rollback(audit_log_id, actor)


__all__ = [
    "Actor",
    "AuditHistory",
    "AuditLogStore",
    "EntityNotFound",
    "InvalidMutation",
    "EntityType",
    "FieldChange",
    "HistoryEntry",
    "Mutation",
    "MutationInterceptor",
    "Origin",
    "RollbackEngine",
    "RollbackError",
    "RollbackResult",
    "SYSTEM_ACTOR",
    "StorageFault",
    "UnknownEntityType",
    "diff",
    "expand",
    "get_history",
    "record_mutation",
    "rollback",
    "snapshot",
]
