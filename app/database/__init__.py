"""
Database module

Contains the data models (schemas) and the persistence backends.
"""

# Export schemas
from app.database.schemas import (
    BloodPressure,
    Patient,
    PatientInput,
    PatientUpdate,
    Appointment,
    AppointmentInput,
    AppointmentUpdate,
    ExtractedFields,
    Visit,
    VisitInput,
    Alert,
    Notification,
)

# Export backends
from app.database.backend import (
    PATIENTS,
    APPOINTMENTS,
    VISITS,
    ALERTS,
    COLLECTIONS,
    Query,
    Subscription,
    PersistenceBackend,
    MemoryBackend,
)
from app.database.storage import JsonFileBackend, read_json, write_json
from app.core import config


def create_backend() -> PersistenceBackend:
    """
    Build the backend selected by STORAGE_BACKEND
    """
    if config.STORAGE_BACKEND == "memory":
        return MemoryBackend()
    if config.STORAGE_BACKEND == "json":
        return JsonFileBackend(data_dir=config.DATA_DIR, cache_ttl_seconds=config.CACHE_TTL_SECONDS)
    raise ValueError(f"Unknown STORAGE_BACKEND '{config.STORAGE_BACKEND}' (expected 'json' or 'memory')")


__all__ = [
    # Schemas
    "BloodPressure",
    "Patient",
    "PatientInput",
    "PatientUpdate",
    "Appointment",
    "AppointmentInput",
    "AppointmentUpdate",
    "ExtractedFields",
    "Visit",
    "VisitInput",
    "Alert",
    "Notification",
    # Backends
    "PATIENTS",
    "APPOINTMENTS",
    "VISITS",
    "ALERTS",
    "COLLECTIONS",
    "Query",
    "Subscription",
    "PersistenceBackend",
    "MemoryBackend",
    "JsonFileBackend",
    "read_json",
    "write_json",
    "create_backend",
]
