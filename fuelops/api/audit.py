"""Audit history and rollback API endpoints"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fuelops.api.auth import can_rollback, get_actor, require_permission
from fuelops.audit import (
    Actor,
    AuditHistory,
    AuditLogStore,
    EntityType,
    HistoryEntry,
    RollbackEngine,
    RollbackError,
)
from fuelops.audit.history import to_history_entry
from fuelops.config import settings
from fuelops.database import get_db
from fuelops.models.user import User
from fuelops.schemas.audit import (
    AuditEntryResponse,
    AuditStatsResponse,
    FieldChangeResponse,
    RollbackErrorResponse,
    RollbackResponse,
)

router = APIRouter()

ERROR_STATUS = {
    RollbackError.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    RollbackError.ALREADY_ROLLED_BACK: status.HTTP_409_CONFLICT,
    RollbackError.ENTITY_DELETED: status.HTTP_409_CONFLICT,
    RollbackError.NOT_REVERSIBLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RollbackError.CONCURRENT_MODIFICATION: status.HTTP_409_CONFLICT,
}


def _entity_type(value: str) -> EntityType:
    try:
        return EntityType(value)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid entity type")


def _to_response(entry: HistoryEntry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=entry.id,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        operation=entry.operation,
        actor_id=entry.actor_id,
        actor_name=entry.actor_name,
        actor_label=entry.actor_label,
        created_at=entry.created_at,
        rolled_back_at=entry.rolled_back_at,
        changed_fields=entry.changed_fields,
        changes={
            name: FieldChangeResponse(old=change.old, new=change.new)
            for name, change in entry.changes.items()
        },
        provenance=entry.provenance,
        rollback_of_id=entry.rollback_of_id,
        entity_deleted=entry.entity_deleted,
        can_rollback=entry.can_rollback,
    )


@router.get("/stats/{entity_type}", response_model=AuditStatsResponse)
async def get_audit_stats(
    entity_type: str,
    days: int = Query(settings.audit_stats_days, ge=1, le=366),
    current_user: User = Depends(require_permission("audit", "view_stats")),
    db: AsyncSession = Depends(get_db),
):
    """Entry counts per operation for an entity type"""
    entity_type = _entity_type(entity_type)
    counts = await AuditHistory(db).get_stats(entity_type.value, days)
    return AuditStatsResponse(entity_type=entity_type.value, days=days, counts=counts)


@router.get("/user/me", response_model=List[AuditEntryResponse])
async def get_my_audit_history(
    limit: int = Query(settings.audit_recent_limit, ge=1, le=1000),
    current_user: User = Depends(require_permission("audit", "view")),
    db: AsyncSession = Depends(get_db),
):
    """Entries written by the current user"""
    entries = await AuditHistory(db).get_user_history(current_user.id, limit)
    return [_to_response(entry) for entry in entries]


@router.post(
    "/rollback/{audit_log_id}",
    response_model=RollbackResponse,
    responses={
        404: {"model": RollbackErrorResponse},
        409: {"model": RollbackErrorResponse},
        422: {"model": RollbackErrorResponse},
    },
)
async def rollback_entry(
    audit_log_id: UUID,
    current_user: User = Depends(require_permission("audit", "rollback")),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    """Undo the mutation recorded by one audit entry"""
    target = await AuditLogStore(db).get_by_id(audit_log_id)
    if target is not None and not can_rollback(current_user, target.entity_type, target.operation):
        raise HTTPException(status_code=403, detail="Insufficient permissions to undo this change")

    result = await RollbackEngine(db).rollback(audit_log_id, actor)

    if not result.ok:
        body = RollbackErrorResponse(error=result.error.value, message=result.message)
        return JSONResponse(status_code=ERROR_STATUS[result.error], content=body.model_dump())

    return RollbackResponse(
        message=result.message,
        rolled_back_entry_id=result.target.id,
        entry=_to_response(to_history_entry(result.entry)) if result.entry else None,
        restored_data=result.entry.new_data if result.entry else None,
    )


@router.get("/{entity_type}", response_model=List[AuditEntryResponse])
async def get_recent_audit_entries(
    entity_type: str,
    limit: int = Query(settings.audit_recent_limit, ge=1, le=1000),
    current_user: User = Depends(require_permission("audit", "view")),
    db: AsyncSession = Depends(get_db),
):
    """Latest entries across all entities of a type"""
    entity_type = _entity_type(entity_type)
    entries = await AuditHistory(db).get_recent(entity_type.value, limit)
    return [_to_response(entry) for entry in entries]


@router.get("/{entity_type}/{entity_id}", response_model=List[AuditEntryResponse])
async def get_entity_history(
    entity_type: str,
    entity_id: UUID,
    limit: Optional[int] = Query(settings.audit_history_limit, ge=1, le=1000),
    current_user: User = Depends(require_permission("audit", "view")),
    db: AsyncSession = Depends(get_db),
):
    """Timeline of one entity, newest first"""
    entity_type = _entity_type(entity_type)
    entries = await AuditHistory(db).get_history(entity_type.value, entity_id, limit)
    return [_to_response(entry) for entry in entries]
