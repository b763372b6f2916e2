"""Pydantic schemas for request/response validation"""

from fuelops.schemas.auth import Token, UserResponse
from fuelops.schemas.customer import (
    CustomerCreate,
    CustomerUpdate,
    CustomerResponse,
    CustomerListResponse,
)
from fuelops.schemas.delivery import (
    DeliveryCostCreate,
    DeliveryCostUpdate,
    DeliveryCostResponse,
    DeliveryCostListResponse,
)
from fuelops.schemas.audit import (
    FieldChangeResponse,
    AuditEntryResponse,
    AuditStatsResponse,
    RollbackResponse,
    RollbackErrorResponse,
)

__all__ = [
    "Token",
    "UserResponse",
    "CustomerCreate",
    "CustomerUpdate",
    "CustomerResponse",
    "CustomerListResponse",
    "DeliveryCostCreate",
    "DeliveryCostUpdate",
    "DeliveryCostResponse",
    "DeliveryCostListResponse",
    "FieldChangeResponse",
    "AuditEntryResponse",
    "AuditStatsResponse",
    "RollbackResponse",
    "RollbackErrorResponse",
]
