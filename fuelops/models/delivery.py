"""Delivery tariff model"""

import uuid
from sqlalchemy import Column, String, Boolean, Numeric
from sqlalchemy.dialects.postgresql import UUID

from fuelops.database import Base
from fuelops.models.mixins import AuditColumnsMixin


class DeliveryCost(AuditColumnsMixin, Base):
    """Carrier tariff for moving product between two points"""
    __tablename__ = "delivery_cost"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    carrier_name = Column(String(255), nullable=False)
    from_entity_type = Column(String(50), nullable=False)  # base, warehouse, delivery_location
    from_entity_id = Column(UUID(as_uuid=True), nullable=False)
    from_location = Column(String(255), nullable=False)
    to_entity_type = Column(String(50), nullable=False)
    to_entity_id = Column(UUID(as_uuid=True), nullable=False)
    to_location = Column(String(255), nullable=False)
    cost_per_kg = Column(Numeric(12, 4), nullable=False)
    distance = Column(Numeric(10, 2))
    is_active = Column(Boolean, default=True)
