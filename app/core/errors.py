"""
Domain errors raised by the store and its persistence backends

Every error carries the entity kind and id so the HTTP layer (or any other
caller) can render a message without re-deriving context.
"""
from typing import Any, Dict, Optional


class StoreError(Exception):
    """
    Base class for all domain errors
    """
    def __init__(self, message: str, kind: Optional[str] = None, entity_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.entity_id = entity_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "kind": self.kind,
            "id": self.entity_id,
        }


class ValidationError(StoreError):
    """Bad input shape or range. Never retried automatically."""


class NotFoundError(StoreError):
    """Referenced id is absent."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found", kind=kind, entity_id=entity_id)


class InvalidStateError(StoreError):
    """Operation is not valid for the entity's current state."""


class PersistenceError(StoreError):
    """Backend rejected the write or was unreachable."""


class PartialWriteError(PersistenceError):
    """
    A composite write stopped halfway

    `written` holds the entity that did reach the backend, `missing` names the
    collection whose write failed.
    """
    def __init__(self, message: str, kind: str, entity_id: str, written: Any, missing: str):
        super().__init__(message, kind=kind, entity_id=entity_id)
        self.written = written
        self.missing = missing

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["missing"] = self.missing
        return data
