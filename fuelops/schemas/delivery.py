"""Delivery tariff schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Literal
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

PointType = Literal["base", "warehouse", "delivery_location"]


class DeliveryCostCreate(BaseModel):
    """Create delivery tariff request"""
    carrier_name: str
    from_entity_type: PointType
    from_entity_id: UUID
    from_location: str
    to_entity_type: PointType
    to_entity_id: UUID
    to_location: str
    cost_per_kg: Decimal = Field(ge=0)
    distance: Optional[Decimal] = Field(default=None, ge=0)
    is_active: bool = True


class DeliveryCostUpdate(BaseModel):
    """Update delivery tariff request"""
    carrier_name: Optional[str] = None
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    cost_per_kg: Optional[Decimal] = Field(default=None, ge=0)
    distance: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("carrier_name", "from_location", "to_location", "cost_per_kg")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class DeliveryCostResponse(BaseModel):
    """Delivery tariff response"""
    id: UUID
    carrier_name: str
    from_entity_type: str
    from_entity_id: UUID
    from_location: str
    to_entity_type: str
    to_entity_id: UUID
    to_location: str
    cost_per_kg: Decimal
    distance: Optional[Decimal]
    is_active: Optional[bool]
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class DeliveryCostListResponse(BaseModel):
    """Delivery tariff list"""
    items: List[DeliveryCostResponse]
    total: int
