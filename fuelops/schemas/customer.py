"""Customer schemas"""

from datetime import datetime
from typing import Optional, List, Literal
from uuid import UUID
from pydantic import BaseModel, field_validator


class CustomerCreate(BaseModel):
    """Create customer request"""
    name: str
    description: Optional[str] = None
    inn: Optional[str] = None
    contract_number: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    module: Literal["wholesale", "refueling", "both"] = "both"
    is_intermediary: bool = False
    is_foreign: bool = False
    is_active: bool = True


class CustomerUpdate(BaseModel):
    """Update customer request"""
    name: Optional[str] = None
    description: Optional[str] = None
    inn: Optional[str] = None
    contract_number: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    module: Optional[Literal["wholesale", "refueling", "both"]] = None
    is_intermediary: Optional[bool] = None
    is_foreign: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("name", "module")
    @classmethod
    def not_null(cls, value):
        # May be omitted, but an explicit null would violate NOT NULL
        if value is None:
            raise ValueError("may not be null")
        return value


class CustomerResponse(BaseModel):
    """Customer response"""
    id: UUID
    name: str
    description: Optional[str]
    inn: Optional[str]
    contract_number: Optional[str]
    contact_person: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    module: str
    is_intermediary: Optional[bool]
    is_foreign: Optional[bool]
    is_active: Optional[bool]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CustomerListResponse(BaseModel):
    """Customer list"""
    items: List[CustomerResponse]
    total: int
