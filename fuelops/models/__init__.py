"""Database models"""

from fuelops.models.user import User, UserRole
from fuelops.models.customer import Customer
from fuelops.models.delivery import DeliveryCost
from fuelops.models.audit import AuditLog, AuditOperation, Provenance

__all__ = [
    "User",
    "UserRole",
    "Customer",
    "DeliveryCost",
    "AuditLog",
    "AuditOperation",
    "Provenance",
]
