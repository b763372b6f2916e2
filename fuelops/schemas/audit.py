"""Audit history and rollback schemas"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel


class FieldChangeResponse(BaseModel):
    """Before/after value of one field"""
    old: Any = None
    new: Any = None


class AuditEntryResponse(BaseModel):
    """One entry of an entity timeline"""
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
    changes: Dict[str, FieldChangeResponse]
    provenance: str
    rollback_of_id: Optional[UUID]
    entity_deleted: bool
    can_rollback: bool

    class Config:
        from_attributes = True


class AuditStatsResponse(BaseModel):
    """Entry counts per operation"""
    entity_type: str
    days: int
    counts: Dict[str, int]


class RollbackResponse(BaseModel):
    """Successful rollback"""
    success: bool = True
    message: str
    rolled_back_entry_id: UUID
    entry: Optional[AuditEntryResponse] = None
    restored_data: Optional[Dict[str, Any]] = None


class RollbackErrorResponse(BaseModel):
    """Rejected rollback"""
    success: bool = False
    error: str
    message: str
