"""Rollback outcomes and infrastructure faults"""

import enum
from dataclasses import dataclass
from typing import Optional

from fuelops.models.audit import AuditLog


class RollbackError(str, enum.Enum):
    """Business reasons a rollback was not applied"""
    NOT_FOUND = "not_found"
    ALREADY_ROLLED_BACK = "already_rolled_back"
    ENTITY_DELETED = "entity_deleted"
    NOT_REVERSIBLE = "not_reversible"
    CONCURRENT_MODIFICATION = "concurrent_modification"


ERROR_MESSAGES = {
    RollbackError.NOT_FOUND: "The audit entry or the entity it refers to no longer exists.",
    RollbackError.ALREADY_ROLLED_BACK: "This change has already been undone.",
    RollbackError.ENTITY_DELETED: (
        "The record was deleted after this change. Undo the deletion first, then retry."
    ),
    RollbackError.NOT_REVERSIBLE: "Restore operations cannot be undone.",
    RollbackError.CONCURRENT_MODIFICATION: (
        "The record was changed by someone else in the meantime. Reload the history and try again."
    ),
}


@dataclass
class RollbackResult:
    """Outcome of RollbackEngine.rollback

    ``target`` is the entry that was asked to be reversed, ``entry`` the new log
    entry recording the reversal. ``entry`` is None on errors and for a CREATE
    rollback whose entity was already gone.
    """
    target: Optional[AuditLog] = None
    entry: Optional[AuditLog] = None
    error: Optional[RollbackError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is not None:
            return ERROR_MESSAGES[self.error]
        if self.entry is None:
            return "The record was already gone; nothing to undo."
        return {
            "DELETE": "Creation undone (record deleted).",
            "UPDATE": "Changes undone (previous values restored).",
            "RESTORE": "Deletion undone (record restored).",
        }[self.entry.operation]

    @classmethod
    def failed(cls, error: RollbackError, target: Optional[AuditLog] = None) -> "RollbackResult":
        return cls(target=target, error=error)


class StorageFault(Exception):
    """Transport or transaction failure; nothing was applied, caller may retry"""

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


class UnknownEntityType(ValueError):
    """Entity type tag is not registered"""


class EntityNotFound(LookupError):
    """Tracked entity does not exist or is soft-deleted"""

    def __init__(self, entity_type: str, entity_id):
        super().__init__(f"{entity_type} {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class InvalidMutation(ValueError):
    """The database rejected the write itself; retrying cannot succeed"""

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original
