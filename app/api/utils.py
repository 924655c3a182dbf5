"""
Utility functions for API endpoints
"""
from fastapi import Request, HTTPException

from app.core.errors import (
    InvalidStateError,
    NotFoundError,
    PartialWriteError,
    PersistenceError,
    StoreError,
    ValidationError,
)
from app.services.notifier import AlertNotifier
from app.services.store import PatientStore


def get_store(request: Request) -> PatientStore:
    """
    Store created by the application lifespan

    Raises HTTPException with 503 if the app has not finished starting
    """
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Patient store is not ready")
    return store


def get_notifier(request: Request) -> AlertNotifier:
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        raise HTTPException(status_code=503, detail="Notifier is not ready")
    return notifier


def status_code_for(exc: StoreError) -> int:
    """
    Map a domain error to an HTTP status
    """
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, InvalidStateError):
        return 409
    if isinstance(exc, PersistenceError):
        return 503
    return 500


def error_body(exc: StoreError) -> dict:
    body = {"detail": exc.message, **exc.to_dict()}
    if isinstance(exc, PartialWriteError):
        body["written"] = exc.written.model_dump(mode="json")
    return body
