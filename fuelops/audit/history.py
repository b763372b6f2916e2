"""Read side of the audit log: per-entity timelines, recent activity, stats"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.audit.diff import FieldChange, expand_all
from fuelops.audit.store import AuditLogStore
from fuelops.models.audit import AuditLog, AuditOperation, Provenance

# What a rollback-produced entry undid, keyed by the entry's own operation
_UNDONE = {
    AuditOperation.DELETE.value: "creation",
    AuditOperation.UPDATE.value: "change",
    AuditOperation.RESTORE.value: "deletion",
}


@dataclass
class HistoryEntry:
    """One log entry as shown on an entity timeline"""
    id: UUID
    entity_type: str
    entity_id: UUID
    operation: str
    actor_id: Optional[UUID]
    actor_name: Optional[str]
    actor_label: str
    created_at: datetime
    rolled_back_at: Optional[datetime]
    changed_fields: List[str]
    changes: Dict[str, FieldChange]
    provenance: str
    rollback_of_id: Optional[UUID]
    entity_deleted: bool
    can_rollback: bool
    old_data: Optional[Dict[str, Any]] = field(default=None, repr=False)
    new_data: Optional[Dict[str, Any]] = field(default=None, repr=False)


def actor_label(entry: AuditLog) -> str:
    name = entry.actor_name or "system"
    if entry.provenance == Provenance.ROLLBACK.value:
        return f"{name} (rollback of {_UNDONE.get(entry.operation, 'operation')})"
    return name


def to_history_entry(entry: AuditLog, entity_deleted: bool = False) -> HistoryEntry:
    if entry.operation == AuditOperation.UPDATE.value:
        changes = expand_all(entry.old_data, entry.new_data, entry.changed_fields or [])
    else:
        changes = expand_all(entry.old_data, entry.new_data)
    can_rollback = (
        not entry.is_rolled_back
        and entry.operation != AuditOperation.RESTORE.value
        and not entity_deleted
    )
    return HistoryEntry(
        id=entry.id,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        operation=entry.operation,
        actor_id=entry.actor_id,
        actor_name=entry.actor_name,
        actor_label=actor_label(entry),
        created_at=entry.created_at,
        rolled_back_at=entry.rolled_back_at,
        changed_fields=list(changes),
        changes=changes,
        provenance=entry.provenance,
        rollback_of_id=entry.rollback_of_id,
        entity_deleted=entity_deleted,
        can_rollback=can_rollback,
        old_data=entry.old_data,
        new_data=entry.new_data,
    )


def build_timeline(entries: List[AuditLog]) -> List[HistoryEntry]:
    """Derive entity_deleted and can_rollback for a newest-first history"""
    timeline = []
    deleted_later = False
    for entry in entries:
        blocked = deleted_later and entry.operation in (
            AuditOperation.CREATE.value,
            AuditOperation.UPDATE.value,
        )
        timeline.append(to_history_entry(entry, entity_deleted=blocked))
        if entry.operation == AuditOperation.DELETE.value and not entry.is_rolled_back:
            deleted_later = True
    return timeline


class AuditHistory:
    """Queries consumed by the history panel"""

    def __init__(self, db: AsyncSession):
        self.store = AuditLogStore(db)

    async def get_history(
        self,
        entity_type: str,
        entity_id: UUID,
        limit: Optional[int] = None,
    ) -> List[HistoryEntry]:
        """Newest-first timeline of one entity

        Every entry newer than a returned one is also returned, so a limited
        page still sees all the deletes that block it.
        """
        if limit:
            entries = await self.store.list_by_entity(entity_type, entity_id, limit)
        else:
            entries = [entry async for entry in self.store.iter_by_entity(entity_type, entity_id)]
        return build_timeline(entries)

    @staticmethod
    def _standalone(rows: List[Tuple[AuditLog, bool]]) -> List[HistoryEntry]:
        # Entries from different entities, flagged by the store query
        return [
            to_history_entry(
                entry,
                entity_deleted=deleted_later and entry.operation in (
                    AuditOperation.CREATE.value,
                    AuditOperation.UPDATE.value,
                ),
            )
            for entry, deleted_later in rows
        ]

    async def get_recent(self, entity_type: str, limit: int = 100) -> List[HistoryEntry]:
        return self._standalone(await self.store.list_recent(entity_type, limit))

    async def get_user_history(self, actor_id: UUID, limit: int = 100) -> List[HistoryEntry]:
        return self._standalone(await self.store.list_by_actor(actor_id, limit))

    async def get_stats(self, entity_type: str, days: int = 30) -> Dict[str, int]:
        since = datetime.utcnow() - timedelta(days=days)
        counts = await self.store.operation_stats(entity_type, since)
        return {operation.value: counts.get(operation.value, 0) for operation in AuditOperation}
