"""
Mutation interceptor.

Every business write on a tracked entity goes through here so that the row
change and its audit entry are committed (or discarded) together.
"""

import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, NamedTuple, Optional
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.audit.context import DIRECT, Actor, Origin
from fuelops.audit.diff import diff
from fuelops.audit.errors import EntityNotFound, InvalidMutation, StorageFault
from fuelops.audit.registry import EntityRepository, repository_for
from fuelops.audit.snapshot import Snapshot, normalize_snapshot
from fuelops.audit.store import AuditLogStore
from fuelops.models.audit import AuditLog, AuditOperation

logger = structlog.get_logger()


class Mutation(NamedTuple):
    """A written entity and the log entry recording the write"""
    entity: Any
    entry: AuditLog


@asynccontextmanager
async def atomic(db: AsyncSession, commit: bool = True):
    """Commit on success, roll back on any error

    Constraint violations surface as InvalidMutation, every other storage
    error as StorageFault. With ``commit=False`` the block joins a transaction owned by the caller and
    neither commits nor rolls back.
    """
    if not commit:
        yield
        return
    try:
        yield
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Audited write rejected", error=str(e.orig))
        raise InvalidMutation("The write violates a database constraint", original=e) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Audited write failed", error=str(e))
        raise StorageFault("Storage failure during audited write", original=e) from e
    except Exception:
        await db.rollback()
        raise


class MutationInterceptor:
    """Wraps creates, updates and soft deletes with audit log emission"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = AuditLogStore(db)

    def repository(self, entity_type) -> EntityRepository:
        return repository_for(self.db, entity_type)

    async def record_mutation(
        self,
        entity_type,
        entity_id: UUID,
        operation: AuditOperation,
        old: Optional[Snapshot],
        new: Optional[Snapshot],
        actor: Actor,
        origin: Origin = DIRECT,
        transaction_id: Optional[UUID] = None,
    ) -> AuditLog:
        """Append the log entry for one mutation that the caller already applied"""
        operation = AuditOperation(operation)
        old = normalize_snapshot(old)
        new = normalize_snapshot(new)
        entry = AuditLog(
            entity_type=getattr(entity_type, "value", entity_type),
            entity_id=entity_id,
            operation=operation.value,
            old_data=old,
            new_data=new,
            changed_fields=diff(old, new) if operation is AuditOperation.UPDATE else None,
            actor_id=actor.id,
            actor_name=actor.name,
            actor_email=actor.email,
            ip_address=actor.ip_address,
            user_agent=actor.user_agent,
            provenance=origin.kind.value,
            rollback_of_id=origin.target_entry_id,
            transaction_id=transaction_id or uuid.uuid4(),
        )
        await self.store.append(entry)
        logger.info(
            "Mutation recorded",
            entity_type=entry.entity_type,
            entity_id=str(entity_id),
            operation=operation.value,
            provenance=origin.kind.value,
        )
        return entry

    async def create(
        self,
        entity_type,
        values: Dict[str, Any],
        actor: Actor,
        origin: Origin = DIRECT,
        commit: bool = True,
    ):
        """Insert a row and log CREATE"""
        repo = self.repository(entity_type)
        async with atomic(self.db, commit):
            entity = await repo.insert(values, actor)
            entry = await self.record_mutation(
                repo.tracked.entity_type,
                entity.id,
                AuditOperation.CREATE,
                None,
                repo.tracked.snapshot(entity),
                actor,
                origin,
            )
        return Mutation(entity, entry)

    async def update(
        self,
        entity_type,
        entity_id: UUID,
        patch: Dict[str, Any],
        actor: Actor,
        origin: Origin = DIRECT,
        commit: bool = True,
        entity=None,
    ):
        """Apply ``patch`` to a live row and log UPDATE

        ``entity`` may be passed when the caller already holds the locked row.
        """
        repo = self.repository(entity_type)
        async with atomic(self.db, commit):
            if entity is None:
                entity = await repo.read(entity_id, for_update=True)
            if entity is None:
                raise EntityNotFound(repo.tracked.entity_type.value, entity_id)
            old = repo.tracked.snapshot(entity)
            await repo.write(entity, patch, actor)
            entry = await self.record_mutation(
                repo.tracked.entity_type,
                entity.id,
                AuditOperation.UPDATE,
                old,
                repo.tracked.snapshot(entity),
                actor,
                origin,
            )
        return Mutation(entity, entry)

    async def soft_delete(
        self,
        entity_type,
        entity_id: UUID,
        actor: Actor,
        origin: Origin = DIRECT,
        commit: bool = True,
        old: Optional[Snapshot] = None,
        entity=None,
    ):
        """Mark a live row deleted and log DELETE

        ``old`` overrides the snapshot stored as the entry's old_data.
        """
        repo = self.repository(entity_type)
        async with atomic(self.db, commit):
            if entity is None:
                entity = await repo.read(entity_id, for_update=True)
            if entity is None:
                raise EntityNotFound(repo.tracked.entity_type.value, entity_id)
            if old is None:
                old = repo.tracked.snapshot(entity)
            await repo.soft_delete(entity, actor)
            entry = await self.record_mutation(
                repo.tracked.entity_type,
                entity.id,
                AuditOperation.DELETE,
                old,
                None,
                actor,
                origin,
            )
        return Mutation(entity, entry)

    async def restore(
        self,
        entity,
        entity_type,
        actor: Actor,
        new: Optional[Snapshot] = None,
        origin: Origin = DIRECT,
        commit: bool = True,
    ):
        """Clear the soft-delete marker of a loaded row and log RESTORE"""
        repo = self.repository(entity_type)
        async with atomic(self.db, commit):
            await repo.restore(entity, actor)
            entry = await self.record_mutation(
                repo.tracked.entity_type,
                entity.id,
                AuditOperation.RESTORE,
                None,
                new if new is not None else repo.tracked.snapshot(entity),
                actor,
                origin,
            )
        return Mutation(entity, entry)
