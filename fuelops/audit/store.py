"""Append-only persistence for audit log entries"""

from datetime import datetime, timedelta
from typing import AsyncIterator, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.models.audit import AuditLog, AuditOperation

_TICK = timedelta(microseconds=1)


class AuditLogStore:
    """Audit log access bound to one session

    Nothing here commits. ``append`` and ``mark_rolled_back`` take part in the
    caller's transaction so the log stays consistent with the entity rows.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _latest_timestamp(self, entity_type: str, entity_id: UUID) -> Optional[datetime]:
        result = await self.db.execute(
            select(func.max(AuditLog.created_at)).where(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == entity_id,
            )
        )
        return result.scalar()

    async def append(self, entry: AuditLog) -> UUID:
        """Insert one entry; created_at is strictly increasing per entity"""
        now = entry.created_at or datetime.utcnow()
        latest = await self._latest_timestamp(entry.entity_type, entry.entity_id)
        if latest is not None and now <= latest:
            now = latest + _TICK
        entry.created_at = now
        self.db.add(entry)
        await self.db.flush()
        return entry.id

    async def get_by_id(self, entry_id: UUID) -> Optional[AuditLog]:
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.id == entry_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _entity_query(self, entity_type: str, entity_id: UUID):
        return (
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        )

    async def list_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
        limit: Optional[int] = None,
    ) -> List[AuditLog]:
        """Full (or first ``limit``) history of one entity, newest first"""
        query = self._entity_query(entity_type, entity_id)
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def iter_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
        page_size: int = 100,
        after: Optional[Tuple[datetime, UUID]] = None,
    ) -> AsyncIterator[AuditLog]:
        """Newest-first history fetched lazily in keyset pages

        ``after`` is the (created_at, id) of the last entry already seen; pass it
        to resume an interrupted walk.
        """
        cursor = after
        while True:
            query = self._entity_query(entity_type, entity_id).limit(page_size)
            if cursor is not None:
                created_at, entry_id = cursor
                query = query.where(
                    or_(
                        AuditLog.created_at < created_at,
                        and_(AuditLog.created_at == created_at, AuditLog.id < entry_id),
                    )
                )
            result = await self.db.execute(query)
            page = list(result.scalars().all())
            for entry in page:
                yield entry
            if len(page) < page_size:
                return
            cursor = (page[-1].created_at, page[-1].id)

    async def mark_rolled_back(
        self,
        entry_id: UUID,
        at: datetime,
        by: Optional[UUID] = None,
    ) -> bool:
        """Set rolled_back_at once; False when it was already set"""
        result = await self.db.execute(
            update(AuditLog)
            .where(AuditLog.id == entry_id, AuditLog.rolled_back_at.is_(None))
            .values(rolled_back_at=at, rolled_back_by_id=by)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _later_delete_clause(self, entry: Optional[AuditLog] = None):
        """EXISTS over later live DELETEs of the same entity

        Bound to ``entry``'s values, or correlated to the enclosing audit_log
        row when no entry is given.
        """
        source = AuditLog if entry is None else entry
        later = AuditLog.__table__.alias("later")
        clause = exists().where(
            later.c.entity_type == source.entity_type,
            later.c.entity_id == source.entity_id,
            later.c.operation == AuditOperation.DELETE.value,
            later.c.rolled_back_at.is_(None),
            later.c.created_at > source.created_at,
        )
        if entry is None:
            clause = clause.correlate(AuditLog)
        return clause

    async def has_later_delete(self, entry: AuditLog) -> bool:
        """Whether a later, not rolled back DELETE exists for the entry's entity"""
        result = await self.db.execute(select(self._later_delete_clause(entry)))
        return bool(result.scalar())

    async def _feed(self, condition, limit: int) -> List[Tuple[AuditLog, bool]]:
        # One query: entries plus their later-delete flag
        result = await self.db.execute(
            select(AuditLog, self._later_delete_clause().label("deleted_later"))
            .where(condition)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
        )
        return [(entry, bool(deleted_later)) for entry, deleted_later in result.all()]

    async def list_recent(self, entity_type: str, limit: int = 100) -> List[Tuple[AuditLog, bool]]:
        """Latest entries of a type as (entry, deleted_later) pairs"""
        return await self._feed(AuditLog.entity_type == entity_type, limit)

    async def list_by_actor(self, actor_id: UUID, limit: int = 100) -> List[Tuple[AuditLog, bool]]:
        """Latest entries written by one actor as (entry, deleted_later) pairs"""
        return await self._feed(AuditLog.actor_id == actor_id, limit)

    async def operation_stats(self, entity_type: str, since: datetime) -> Dict[str, int]:
        """Entry count per operation for one entity type since ``since``"""
        result = await self.db.execute(
            select(AuditLog.operation, func.count(AuditLog.id))
            .where(AuditLog.entity_type == entity_type, AuditLog.created_at >= since)
            .group_by(AuditLog.operation)
        )
        return {operation: count for operation, count in result.all()}
