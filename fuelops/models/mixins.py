"""Shared column sets for tracked business records"""

from datetime import datetime
from sqlalchemy import Column, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_mixin, declared_attr


@declarative_mixin
class AuditColumnsMixin:
    """Standard authorship and soft-delete columns owned by every tracked entity"""

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime)
    deleted_at = Column(DateTime, index=True)

    @declared_attr
    def created_by_id(cls):
        return Column(UUID(as_uuid=True), ForeignKey("users.id"))

    @declared_attr
    def updated_by_id(cls):
        return Column(UUID(as_uuid=True), ForeignKey("users.id"))

    @declared_attr
    def deleted_by_id(cls):
        return Column(UUID(as_uuid=True), ForeignKey("users.id"))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
