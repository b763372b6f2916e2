"""User model for dashboard authentication"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID
import enum

from fuelops.database import Base


class UserRole(str, enum.Enum):
    """User roles for RBAC"""
    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


# Permissions are "<module>.<action>"; "*" grants everything
ROLE_PERMISSIONS = {
    UserRole.ADMIN: {"*"},
    UserRole.MANAGER: {
        "customers.view", "customers.create", "customers.edit", "customers.delete",
        "delivery_cost.view", "delivery_cost.create", "delivery_cost.edit", "delivery_cost.delete",
        "audit.view", "audit.rollback",
    },
    UserRole.VIEWER: {
        "customers.view",
        "delivery_cost.view",
        "audit.view",
    },
}


class User(Base):
    """Dashboard users"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    # Profile
    first_name = Column(String(100))
    last_name = Column(String(100))

    # Role
    role = Column(Enum(UserRole), default=UserRole.VIEWER)

    # Status
    is_active = Column(Boolean, default=True)

    # Timestamps
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email

    def has_permission(self, module: str, action: str) -> bool:
        """Check whether the user's role grants module.action"""
        granted = ROLE_PERMISSIONS.get(self.role, set())
        return "*" in granted or f"{module}.{action}" in granted
