"""Audit log model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, Index
from sqlalchemy.dialects.postgresql import UUID

from fuelops.database import Base


class AuditOperation(str, enum.Enum):
    """Kinds of logged mutations"""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"


class Provenance(str, enum.Enum):
    """Where a logged mutation came from"""
    USER = "USER"
    ROLLBACK = "ROLLBACK"


class AuditLog(Base):
    """Append-only record of one mutation of a tracked entity"""
    __tablename__ = "audit_log"
    __table_args__ = (
        Index("audit_log_entity_created_idx", "entity_type", "entity_id", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Target
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(UUID(as_uuid=True), nullable=False)
    operation = Column(String(10), nullable=False, index=True)  # AuditOperation value

    # Change data
    old_data = Column(JSON)
    new_data = Column(JSON)
    changed_fields = Column(JSON)  # ordered list, UPDATE only

    # Actor information
    actor_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), index=True)
    actor_name = Column(String(255))
    actor_email = Column(String(255))

    # Request context
    ip_address = Column(String(50))
    user_agent = Column(Text)

    # Provenance
    provenance = Column(String(10), nullable=False, default=Provenance.USER.value)
    rollback_of_id = Column(UUID(as_uuid=True), ForeignKey("audit_log.id"))
    transaction_id = Column(UUID(as_uuid=True))

    # Reversal; the only column ever updated after insert
    rolled_back_at = Column(DateTime)
    rolled_back_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id"))

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    @property
    def audit_operation(self) -> AuditOperation:
        return AuditOperation(self.operation)

    @property
    def is_rolled_back(self) -> bool:
        return self.rolled_back_at is not None
