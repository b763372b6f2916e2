"""Customer directory model"""

import uuid
from sqlalchemy import Column, String, Boolean, Text
from sqlalchemy.dialects.postgresql import UUID

from fuelops.database import Base
from fuelops.models.mixins import AuditColumnsMixin


class Customer(AuditColumnsMixin, Base):
    """Wholesale and refueling buyers"""
    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    inn = Column(String(20))  # Taxpayer number
    contract_number = Column(String(100))
    contact_person = Column(String(255))
    phone = Column(String(50))
    email = Column(String(255))
    module = Column(String(20), nullable=False, default="both")  # wholesale, refueling, both
    is_intermediary = Column(Boolean, default=False)
    is_foreign = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
