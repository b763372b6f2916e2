"""Actor identity passed explicitly into every audited write"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fuelops.models.audit import Provenance


@dataclass(frozen=True)
class Actor:
    """Who performs a mutation and from where"""
    id: Optional[UUID]
    name: Optional[str] = None
    email: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_user(cls, user, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> "Actor":
        return cls(
            id=user.id,
            name=user.full_name,
            email=user.email,
            ip_address=ip_address,
            user_agent=user_agent,
        )


SYSTEM_ACTOR = Actor(id=None, name="system")


@dataclass(frozen=True)
class Origin:
    """Provenance of a log entry"""
    kind: Provenance = Provenance.USER
    target_entry_id: Optional[UUID] = None

    @classmethod
    def rollback_of(cls, entry_id: UUID) -> "Origin":
        return cls(kind=Provenance.ROLLBACK, target_entry_id=entry_id)


DIRECT = Origin()
