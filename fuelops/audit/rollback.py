"""
Rollback engine.

Reverses a single logged mutation by applying its inverse as a new, logged
mutation:

    CREATE  -> soft delete        (new DELETE entry)
    UPDATE  -> write old values   (new UPDATE entry, changed fields only)
    DELETE  -> clear deleted_at   (new RESTORE entry)
    RESTORE -> not reversible

The whole reversal is one transaction. The conditional write of
``rolled_back_at`` is the only guard against two callers reversing the same
entry; whoever loses it gets ALREADY_ROLLED_BACK and nothing is applied.
"""

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.audit.context import Actor, Origin
from fuelops.audit.errors import (
    RollbackError,
    RollbackResult,
    StorageFault,
    UnknownEntityType,
)
from fuelops.audit.interceptor import MutationInterceptor
from fuelops.audit.registry import get_tracked
from fuelops.audit.snapshot import decode_snapshot
from fuelops.audit.store import AuditLogStore
from fuelops.models.audit import AuditLog, AuditOperation

logger = structlog.get_logger()


class RollbackEngine:
    """Applies the inverse of one audit log entry"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = AuditLogStore(db)
        self.interceptor = MutationInterceptor(db)
        self._handlers = {
            AuditOperation.CREATE: self._undo_create,
            AuditOperation.UPDATE: self._undo_update,
            AuditOperation.DELETE: self._undo_delete,
        }

    async def rollback(self, audit_log_id: UUID, actor: Actor) -> RollbackResult:
        """Reverse one entry; business failures come back as result errors"""
        try:
            result = await self._rollback(audit_log_id, actor)
            if result.ok:
                await self.db.commit()
            else:
                await self.db.rollback()
                if result.target is not None:
                    await self.db.refresh(result.target)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Rollback storage failure", audit_log_id=str(audit_log_id), error=str(e))
            raise StorageFault("Storage failure during rollback", original=e) from e
        except Exception:
            await self.db.rollback()
            raise

        if result.ok:
            logger.info(
                "Rollback applied",
                audit_log_id=str(audit_log_id),
                actor_id=str(actor.id) if actor.id else None,
                new_entry_id=str(result.entry.id) if result.entry else None,
            )
        else:
            logger.warning(
                "Rollback rejected",
                audit_log_id=str(audit_log_id),
                reason=result.error.value,
            )
        return result

    async def _rollback(self, audit_log_id: UUID, actor: Actor) -> RollbackResult:
        target = await self.store.get_by_id(audit_log_id)
        if target is None:
            return RollbackResult.failed(RollbackError.NOT_FOUND)
        if target.is_rolled_back:
            return RollbackResult.failed(RollbackError.ALREADY_ROLLED_BACK, target)

        operation = target.audit_operation
        handler = self._handlers.get(operation)
        if handler is None:
            return RollbackResult.failed(RollbackError.NOT_REVERSIBLE, target)
        try:
            get_tracked(target.entity_type)
        except UnknownEntityType:
            return RollbackResult.failed(RollbackError.NOT_REVERSIBLE, target)

        if operation in (AuditOperation.CREATE, AuditOperation.UPDATE):
            if await self.store.has_later_delete(target):
                return RollbackResult.failed(RollbackError.ENTITY_DELETED, target)

        if not await self.store.mark_rolled_back(target.id, datetime.utcnow(), actor.id):
            logger.info("Rollback lost race", audit_log_id=str(target.id))
            return RollbackResult.failed(RollbackError.ALREADY_ROLLED_BACK, target)
        await self.db.refresh(target)

        return await handler(target, actor)

    async def _load(self, target: AuditLog):
        repo = self.interceptor.repository(target.entity_type)
        return await repo.read(target.entity_id, include_deleted=True, for_update=True)

    async def _undo_create(self, target: AuditLog, actor: Actor) -> RollbackResult:
        entity = await self._load(target)
        if entity is None or entity.is_deleted:
            # Already gone: nothing to apply, the reversal is still consumed
            return RollbackResult(target=target)
        mutation = await self.interceptor.soft_delete(
            target.entity_type,
            target.entity_id,
            actor,
            origin=Origin.rollback_of(target.id),
            commit=False,
            old=target.new_data,
            entity=entity,
        )
        return RollbackResult(target=target, entry=mutation.entry)

    async def _undo_update(self, target: AuditLog, actor: Actor) -> RollbackResult:
        entity = await self._load(target)
        if entity is None:
            return RollbackResult.failed(RollbackError.NOT_FOUND, target)
        if entity.is_deleted:
            return RollbackResult.failed(RollbackError.CONCURRENT_MODIFICATION, target)

        tracked = get_tracked(target.entity_type)
        fields = [name for name in (target.changed_fields or []) if name in tracked.fields]
        patch = decode_snapshot(tracked.model, target.old_data or {}, fields)
        mutation = await self.interceptor.update(
            target.entity_type,
            target.entity_id,
            patch,
            actor,
            origin=Origin.rollback_of(target.id),
            commit=False,
            entity=entity,
        )
        return RollbackResult(target=target, entry=mutation.entry)

    async def _undo_delete(self, target: AuditLog, actor: Actor) -> RollbackResult:
        entity = await self._load(target)
        if entity is None:
            return RollbackResult.failed(RollbackError.NOT_FOUND, target)
        if not entity.is_deleted:
            return RollbackResult.failed(RollbackError.CONCURRENT_MODIFICATION, target)
        mutation = await self.interceptor.restore(
            entity,
            target.entity_type,
            actor,
            new=target.old_data,
            origin=Origin.rollback_of(target.id),
            commit=False,
        )
        return RollbackResult(target=target, entry=mutation.entry)
