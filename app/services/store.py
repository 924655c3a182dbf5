"""
Patient store

Single owner of the four in-memory collections (patients, appointments,
visits, alerts). Every mutation goes through here:

- writes hit the backend first; the local collection changes only after the
  backend accepted the write (no optimistic inserts)
- writes to the same entity id are serialised with a per-id asyncio.Lock
- backend snapshots fully replace the local collection
- observers get an immutable CollectionChange after every local write and
  every snapshot

Backend calls have no timeout: a hung backend hangs the awaiting caller.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core import config
from app.core.errors import (
    InvalidStateError,
    NotFoundError,
    PartialWriteError,
    PersistenceError,
    StoreError,
    ValidationError,
)
from app.database.backend import (
    ALERTS,
    APPOINTMENTS,
    COLLECTIONS,
    PATIENTS,
    VISITS,
    PersistenceBackend,
    Query,
    Subscription,
)
from app.database.schemas import (
    Alert,
    Appointment,
    AppointmentInput,
    AppointmentUpdate,
    BloodPressure,
    DashboardSummary,
    Patient,
    PatientInput,
    PatientReport,
    PatientUpdate,
    VillageRiskStats,
    Visit,
    VisitInput,
)
from app.services import stats
from app.services.risk import HIGH, classify, recommended_action, risk_factors
from app.services.voice import parse_transcript

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

UNKNOWN_PATIENT = "Unknown"

MODELS: Dict[str, Type[BaseModel]] = {
    PATIENTS: Patient,
    APPOINTMENTS: Appointment,
    VISITS: Visit,
    ALERTS: Alert,
}

# Entity names used in error messages
ENTITY_NAMES = {
    PATIENTS: "patient",
    APPOINTMENTS: "appointment",
    VISITS: "visit",
    ALERTS: "alert",
}

VITAL_FIELDS = ("bp_systolic", "bp_diastolic", "sugar_level", "is_pregnant")


def _today_or_later(document: Dict[str, Any]) -> bool:
    return (document.get("date") or "") >= stats.utc_today().isoformat()


DEFAULT_QUERIES: Dict[str, Query] = {
    PATIENTS: Query(order_by="created_at", descending=True),
    VISITS: Query(order_by="created_at", descending=True),
    ALERTS: Query(order_by="created_at", descending=True),
    APPOINTMENTS: Query(order_by="date", where=_today_or_later),
}


@dataclass(frozen=True)
class CollectionChange:
    """
    Snapshot handed to store observers

    source is "local" (a write through this store), "snapshot" (backend
    feed) or "load" (initial bulk load).
    """
    kind: str
    items: Tuple[BaseModel, ...]
    source: str


Observer = Callable[[CollectionChange], None]


@dataclass
class _EntityLock:
    """Lock for one (collection, id) plus the number of writers using it"""
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_stamp(*previous: Optional[datetime]) -> datetime:
    """
    Current time, but never earlier than any of `previous`
    """
    stamp = _utcnow()
    for value in previous:
        if value is not None and value > stamp:
            stamp = value
    return stamp


def _describe(exc: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
        for error in exc.errors()
    )


def _coerce(model_cls: Type[ModelT], data: Any, kind: str) -> ModelT:
    """
    Accept either a model instance or raw data; raise the domain ValidationError
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_describe(exc), kind=kind) from exc


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


class PatientStore:
    """
    Authoritative in-memory state over a persistence backend

    All methods must be called from the event loop that runs the store.
    """
    def __init__(self, backend: PersistenceBackend, default_worker: Optional[str] = None):
        self._backend = backend
        self.default_worker = default_worker or config.DEFAULT_ASHA_WORKER
        self._collections: Dict[str, Dict[str, BaseModel]] = {kind: {} for kind in COLLECTIONS}
        self._observers: Dict[str, List[Observer]] = {kind: [] for kind in COLLECTIONS}
        self._locks: Dict[Tuple[str, str], _EntityLock] = {}
        self._subscriptions: List[Subscription] = []
        self._tasks: List[asyncio.Task] = []
        self.load_status: Dict[str, bool] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def load(self) -> Dict[str, bool]:
        """
        Initial bulk load of all four collections

        A collection that fails to load is logged and left empty; the others
        still load.

        Returns:
            Mapping of collection name -> whether it loaded
        """
        results = await asyncio.gather(
            *(self._backend.get_all(kind, DEFAULT_QUERIES[kind]) for kind in COLLECTIONS),
            return_exceptions=True,
        )
        status = {}
        for kind, result in zip(COLLECTIONS, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.error("Failed to load %s: %s", kind, result)
                status[kind] = False
                continue
            self._replace(kind, self._to_models(kind, result), source="load")
            logger.info("Loaded %d %s", len(result), kind)
            status[kind] = True
        self.load_status = status
        return status

    def start_sync(self):
        """
        Subscribe once per collection to the backend's snapshot feed
        """
        if self._tasks:
            return
        for kind in COLLECTIONS:
            subscription = self._backend.subscribe(kind, DEFAULT_QUERIES[kind])
            self._subscriptions.append(subscription)
            self._tasks.append(asyncio.create_task(self._consume(subscription), name=f"sync-{kind}"))
        logger.info("Real-time sync active for %s", ", ".join(COLLECTIONS))

    @property
    def syncing(self) -> bool:
        """True while backend snapshots are being applied"""
        return bool(self._tasks)

    async def _consume(self, subscription: Subscription):
        try:
            async for snapshot in subscription:
                self.apply_snapshot(subscription.collection, snapshot)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Snapshot feed for %s stopped", subscription.collection)

    async def close(self):
        for subscription in self._subscriptions:
            subscription.close()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._subscriptions = []
        self._tasks = []

    def apply_snapshot(self, kind: str, documents: Iterable[Dict[str, Any]]):
        """
        Replace the local collection with a backend snapshot (no merge)
        """
        models = self._to_models(kind, documents)
        previous = len(self._collections[kind])
        self._replace(kind, models, source="snapshot")
        logger.debug("%s snapshot applied: %d -> %d", kind, previous, len(models))

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, kind: str, callback: Observer) -> Callable[[], None]:
        """
        Register a change observer for one collection

        Returns:
            Function that removes the observer (safe to call twice)
        """
        if kind not in self._observers:
            raise ValueError(f"Unknown collection '{kind}'")
        self._observers[kind].append(callback)

        def unsubscribe():
            if callback in self._observers[kind]:
                self._observers[kind].remove(callback)

        return unsubscribe

    def _notify(self, kind: str, source: str):
        change = CollectionChange(kind=kind, items=tuple(self._sorted(kind)), source=source)
        for callback in list(self._observers[kind]):
            try:
                callback(change)
            except Exception:
                logger.exception("Observer for %s failed", kind)

    # ------------------------------------------------------------------
    # Internal collection handling
    # ------------------------------------------------------------------

    def _to_models(self, kind: str, documents: Iterable[Dict[str, Any]]) -> List[BaseModel]:
        model_cls = MODELS[kind]
        models = []
        for document in documents:
            try:
                models.append(model_cls.model_validate(document))
            except PydanticValidationError as exc:
                logger.warning("Skipping malformed %s document %s: %s", kind, document.get("id"), _describe(exc))
        return models

    def _replace(self, kind: str, models: Iterable[BaseModel], source: str):
        self._collections[kind] = {model.id: model for model in models}
        self._notify(kind, source)

    def _put(self, kind: str, model: BaseModel):
        updated = dict(self._collections[kind])
        updated[model.id] = model
        self._collections[kind] = updated
        self._notify(kind, "local")

    def _remove(self, kind: str, entity_id: str):
        updated = dict(self._collections[kind])
        updated.pop(entity_id, None)
        self._collections[kind] = updated
        self._notify(kind, "local")

    def _sorted(self, kind: str) -> List[BaseModel]:
        items = list(self._collections[kind].values())
        if kind == APPOINTMENTS:
            return sorted(items, key=lambda item: (item.date, item.time))
        stamp_field = "timestamp" if kind == VISITS else "created_at"
        present = [item for item in items if getattr(item, stamp_field) is not None]
        missing = [item for item in items if getattr(item, stamp_field) is None]
        present.sort(key=lambda item: getattr(item, stamp_field), reverse=True)
        return present + missing

    def _get(self, kind: str, entity_id: str) -> BaseModel:
        model = self._collections[kind].get(entity_id)
        if model is None:
            raise NotFoundError(ENTITY_NAMES[kind], entity_id)
        return model

    @asynccontextmanager
    async def _lock(self, kind: str, entity_id: str):
        """
        Hold the write lock of one entity

        The entry is dropped once no writer holds or waits for it, so ids that
        are deleted (or never written again) do not keep a lock alive.
        """
        key = (kind, entity_id)
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _EntityLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    async def _read_back(self, kind: str, entity_id: str, fallback: ModelT) -> ModelT:
        """
        The document as the backend stored it (server timestamps included)

        The write already succeeded, so a failed read falls back to the locally
        built model; the next snapshot brings the stored stamps.
        """
        try:
            document = await self._backend_call(kind, entity_id, self._backend.get(kind, entity_id))
        except StoreError as exc:
            logger.warning("Could not read back %s %s after write: %s", ENTITY_NAMES[kind], entity_id, exc.message)
            return fallback
        return type(fallback).model_validate(document)

    async def _backend_call(self, kind: str, entity_id: Optional[str], awaitable):
        """
        Await a backend call, normalising its failures to domain errors
        """
        entity = ENTITY_NAMES[kind]
        try:
            return await awaitable
        except NotFoundError:
            raise NotFoundError(entity, entity_id) from None
        except StoreError:
            raise
        except Exception as exc:
            raise PersistenceError(
                f"Backend failed for {entity} {entity_id or '(new)'}: {exc}",
                kind=entity,
                entity_id=entity_id,
            ) from exc

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------

    async def add_patient(self, data: Any) -> Patient:
        """
        Validate, classify and persist a new patient

        Raises:
            ValidationError: empty name, negative age or malformed fields
            PersistenceError: backend rejected the write (local state untouched)
        """
        payload = _coerce(PatientInput, data, "patient")
        document = {
            "name": payload.name,
            "age": payload.age,
            "village": payload.village.strip(),
            "phone": payload.phone,
            "blood_pressure": {"systolic": payload.bp_systolic, "diastolic": payload.bp_diastolic},
            "sugar_level": payload.sugar_level,
            "is_pregnant": payload.is_pregnant,
            "symptoms": payload.symptoms,
            "has_insurance": payload.has_insurance,
            "risk_level": classify(payload.bp_systolic, payload.bp_diastolic, payload.sugar_level, payload.is_pregnant),
            "created_by": payload.created_by or self.default_worker,
        }
        patient_id = await self._backend_call(PATIENTS, None, self._backend.create(PATIENTS, document))
        stamp = _utcnow()
        patient = await self._read_back(
            PATIENTS,
            patient_id,
            Patient.model_validate({**document, "id": patient_id, "created_at": stamp, "updated_at": stamp}),
        )
        self._put(PATIENTS, patient)
        logger.info("Added patient %s (risk %s)", patient_id, patient.risk_level)
        return patient

    async def update_patient(self, patient_id: str, fields: Any) -> Patient:
        """
        Apply a partial update; risk is re-derived when any vital changes

        Raises:
            NotFoundError: unknown id
            ValidationError: invalid field values
            PersistenceError: backend rejected the write (prior state kept)
        """
        changes = _coerce(PatientUpdate, fields, "patient").model_dump(exclude_none=True)
        async with self._lock(PATIENTS, patient_id):
            existing = self._get(PATIENTS, patient_id)
            document = {
                key: value for key, value in changes.items()
                if key not in ("bp_systolic", "bp_diastolic")
            }
            if "village" in document:
                document["village"] = document["village"].strip()

            systolic = changes.get("bp_systolic", existing.blood_pressure.systolic)
            diastolic = changes.get("bp_diastolic", existing.blood_pressure.diastolic)
            if "bp_systolic" in changes or "bp_diastolic" in changes:
                document["blood_pressure"] = {"systolic": systolic, "diastolic": diastolic}

            sugar = changes.get("sugar_level", existing.sugar_level)
            pregnant = changes.get("is_pregnant", existing.is_pregnant)
            vitals_changed = (
                systolic != existing.blood_pressure.systolic
                or diastolic != existing.blood_pressure.diastolic
                or sugar != existing.sugar_level
                or pregnant != existing.is_pregnant
            )
            if vitals_changed or existing.risk_level is None:
                document["risk_level"] = classify(systolic, diastolic, sugar, pregnant)

            await self._backend_call(PATIENTS, patient_id, self._backend.update(PATIENTS, patient_id, document))

            stamp = _next_stamp(existing.created_at, existing.updated_at)
            patient = await self._read_back(
                PATIENTS,
                patient_id,
                Patient.model_validate({**existing.model_dump(), **document, "updated_at": stamp}),
            )
            self._put(PATIENTS, patient)
            logger.info("Updated patient %s (risk %s)", patient_id, patient.risk_level)
            return patient

    async def delete_patient(self, patient_id: str) -> None:
        """
        Delete a patient; appointments, visits and alerts referencing it stay

        Raises:
            NotFoundError: unknown id, including a second delete of the same id
        """
        async with self._lock(PATIENTS, patient_id):
            self._get(PATIENTS, patient_id)
            try:
                await self._backend_call(PATIENTS, patient_id, self._backend.delete(PATIENTS, patient_id))
            except NotFoundError:
                # Already gone remotely: the local copy is stale
                self._remove(PATIENTS, patient_id)
                raise
            self._remove(PATIENTS, patient_id)
            logger.info("Deleted patient %s", patient_id)

    def get_patient(self, patient_id: str) -> Patient:
        return self._get(PATIENTS, patient_id)

    def list_patients(self) -> List[Patient]:
        """Newest first"""
        return self._sorted(PATIENTS)

    def list_high_risk_patients(self) -> List[Patient]:
        return stats.high_risk_patients(self.list_patients())

    def search_patients(self, query: str) -> List[Patient]:
        """
        Case-insensitive substring match on name or village, substring on phone
        """
        needle = (query or "").strip().lower()
        if not needle:
            return self.list_patients()
        return [
            patient for patient in self.list_patients()
            if needle in patient.name.lower()
            or needle in (patient.village or "").lower()
            or (patient.phone and needle in patient.phone)
        ]

    def resolve_patient_name(self, patient_id: str, fallback: Optional[str] = None) -> str:
        """
        Live patient name, else the denormalised label, else a placeholder
        """
        patient = self._collections[PATIENTS].get(patient_id)
        if patient is not None:
            return patient.name
        return fallback or UNKNOWN_PATIENT

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    async def add_appointment(self, data: Any) -> Appointment:
        """
        Schedule a follow-up. Overlapping date/time slots are allowed.
        """
        payload = _coerce(AppointmentInput, data, "appointment")
        patient = self._collections[PATIENTS].get(payload.patient_id)
        document = {
            "patient_id": payload.patient_id,
            "patient_name": payload.patient_name or (patient.name if patient else ""),
            "date": payload.date,
            "time": payload.time,
            "notes": payload.notes,
            "status": "SCHEDULED",
        }
        appointment_id = await self._backend_call(APPOINTMENTS, None, self._backend.create(APPOINTMENTS, document))
        stamp = _utcnow()
        appointment = await self._read_back(
            APPOINTMENTS,
            appointment_id,
            Appointment.model_validate({**document, "id": appointment_id, "created_at": stamp, "updated_at": stamp}),
        )
        self._put(APPOINTMENTS, appointment)
        logger.info("Scheduled appointment %s for patient %s on %s", appointment_id, payload.patient_id, payload.date)
        return appointment

    async def update_appointment(self, appointment_id: str, fields: Any) -> Appointment:
        changes = _coerce(AppointmentUpdate, fields, "appointment").model_dump(exclude_none=True)
        async with self._lock(APPOINTMENTS, appointment_id):
            existing = self._get(APPOINTMENTS, appointment_id)
            await self._backend_call(
                APPOINTMENTS, appointment_id, self._backend.update(APPOINTMENTS, appointment_id, changes)
            )
            stamp = _next_stamp(existing.created_at, existing.updated_at)
            appointment = await self._read_back(
                APPOINTMENTS,
                appointment_id,
                Appointment.model_validate({**existing.model_dump(), **changes, "updated_at": stamp}),
            )
            self._put(APPOINTMENTS, appointment)
            return appointment

    async def delete_appointment(self, appointment_id: str) -> None:
        async with self._lock(APPOINTMENTS, appointment_id):
            self._get(APPOINTMENTS, appointment_id)
            await self._backend_call(APPOINTMENTS, appointment_id, self._backend.delete(APPOINTMENTS, appointment_id))
            self._remove(APPOINTMENTS, appointment_id)

    def get_appointment(self, appointment_id: str) -> Appointment:
        return self._get(APPOINTMENTS, appointment_id)

    def list_appointments(self) -> List[Appointment]:
        """Soonest first"""
        return self._sorted(APPOINTMENTS)

    def list_upcoming_appointments(self, today: Optional[date] = None) -> List[Appointment]:
        return stats.upcoming_appointments(self.list_appointments(), today)

    # ------------------------------------------------------------------
    # Visits and alerts
    # ------------------------------------------------------------------

    async def add_visit(self, data: Any) -> Visit:
        """
        Record a dictated visit; a HIGH-risk visit also gets exactly one alert

        Vitals come from the explicit fields first, then from the transcript.
        Pregnancy falls back to the patient's record.

        Raises:
            ValidationError: malformed payload
            PersistenceError: the visit write failed (nothing stored)
            PartialWriteError: the visit was stored but its alert was not;
                retry the missing half with create_alert_for_visit
        """
        payload = _coerce(VisitInput, data, "visit")
        extracted = payload.extracted_data or parse_transcript(payload.transcription)
        patient = self._collections[PATIENTS].get(payload.patient_id)

        systolic = _first_set(payload.bp_systolic, extracted.bp_systolic, 0)
        diastolic = _first_set(payload.bp_diastolic, extracted.bp_diastolic, 0)
        sugar = _first_set(payload.sugar_level, extracted.sugar_level, 0)
        pregnant = _first_set(payload.is_pregnant, patient.is_pregnant if patient else None, False)
        risk = classify(systolic, diastolic, sugar, pregnant)

        document = {
            "patient_id": payload.patient_id,
            "patient_name": payload.patient_name or (patient.name if patient else None) or extracted.name or "",
            "asha_worker": payload.asha_worker or self.default_worker,
            "asha_phone": payload.asha_phone,
            "transcription": payload.transcription,
            "extracted_data": extracted.model_dump(),
            "blood_pressure": {"systolic": systolic, "diastolic": diastolic},
            "sugar_level": sugar,
            "is_pregnant": pregnant,
            "risk_level": risk,
            "is_emergency": risk == HIGH,
        }
        visit_id = await self._backend_call(VISITS, None, self._backend.create(VISITS, document))
        visit = await self._read_back(
            VISITS, visit_id, Visit.model_validate({**document, "id": visit_id, "timestamp": _utcnow()})
        )
        self._put(VISITS, visit)
        logger.info("Recorded visit %s for patient %s (risk %s)", visit_id, payload.patient_id, risk)

        if visit.is_emergency:
            async with self._lock(VISITS, visit_id):
                try:
                    await self._create_alert(visit, extracted.village)
                except PersistenceError as exc:
                    logger.error("Visit %s saved but alert write failed: %s", visit_id, exc.message)
                    raise PartialWriteError(
                        f"Visit {visit_id} was saved but its alert could not be created: {exc.message}",
                        kind="visit",
                        entity_id=visit_id,
                        written=visit,
                        missing=ALERTS,
                    ) from exc
        return visit

    async def create_alert_for_visit(self, visit_id: str) -> Alert:
        """
        Create the missing alert of a HIGH-risk visit (second half of a
        partial add_visit)

        Raises:
            NotFoundError: unknown visit
            InvalidStateError: visit is not HIGH risk or already has an alert
        """
        async with self._lock(VISITS, visit_id):
            visit = self._get(VISITS, visit_id)
            if not visit.is_emergency:
                raise InvalidStateError(
                    f"Visit {visit_id} is {visit.risk_level} risk and does not raise an alert",
                    kind="visit",
                    entity_id=visit_id,
                )
            existing = self.get_alert_for_visit(visit_id)
            if existing is not None:
                raise InvalidStateError(
                    f"Visit {visit_id} already has alert {existing.id}",
                    kind="visit",
                    entity_id=visit_id,
                )
            return await self._create_alert(visit, visit.extracted_data.village)

    async def _create_alert(self, visit: Visit, fallback_village: Optional[str]) -> Alert:
        patient = self._collections[PATIENTS].get(visit.patient_id)
        vitals = (visit.blood_pressure.systolic, visit.blood_pressure.diastolic, visit.sugar_level, visit.is_pregnant)
        document = {
            "visit_id": visit.id,
            "patient_id": visit.patient_id,
            "patient_name": visit.patient_name,
            "village": (patient.village if patient else None) or fallback_village or "",
            "asha_worker": visit.asha_worker,
            "severity": visit.risk_level,
            "risk_factors": risk_factors(*vitals),
            "recommended_action": recommended_action(visit.risk_level),
            "acknowledged": False,
            "acknowledged_by": None,
            "acknowledged_at": None,
        }
        alert_id = await self._backend_call(ALERTS, None, self._backend.create(ALERTS, document))
        alert = await self._read_back(
            ALERTS, alert_id, Alert.model_validate({**document, "id": alert_id, "created_at": _utcnow()})
        )
        self._put(ALERTS, alert)
        logger.warning("Emergency alert %s raised for patient %s", alert_id, visit.patient_id)
        return alert

    async def acknowledge_alert(self, alert_id: str, acknowledged_by: Optional[str] = None) -> Alert:
        """
        Move an alert from unacknowledged to acknowledged (terminal)

        Raises:
            NotFoundError: unknown id
            InvalidStateError: already acknowledged (double-acknowledge)
        """
        async with self._lock(ALERTS, alert_id):
            alert = self._get(ALERTS, alert_id)
            if alert.acknowledged:
                raise InvalidStateError(
                    f"Alert {alert_id} was already acknowledged by {alert.acknowledged_by or 'unknown'}",
                    kind="alert",
                    entity_id=alert_id,
                )
            changes = {
                "acknowledged": True,
                "acknowledged_by": acknowledged_by or self.default_worker,
                "acknowledged_at": _next_stamp(alert.created_at),
            }
            await self._backend_call(ALERTS, alert_id, self._backend.update(ALERTS, alert_id, changes))
            acknowledged = await self._read_back(ALERTS, alert_id, alert.model_copy(update=changes))
            self._put(ALERTS, acknowledged)
            logger.info("Alert %s acknowledged by %s", alert_id, changes["acknowledged_by"])
            return acknowledged

    def get_visit(self, visit_id: str) -> Visit:
        return self._get(VISITS, visit_id)

    def list_visits(self) -> List[Visit]:
        """Newest first"""
        return self._sorted(VISITS)

    def list_visits_for_patient(self, patient_id: str) -> List[Visit]:
        return [visit for visit in self.list_visits() if visit.patient_id == patient_id]

    def get_alert(self, alert_id: str) -> Alert:
        return self._get(ALERTS, alert_id)

    def get_alert_for_visit(self, visit_id: str) -> Optional[Alert]:
        for alert in self._collections[ALERTS].values():
            if alert.visit_id == visit_id:
                return alert
        return None

    def list_alerts(self) -> List[Alert]:
        """All alerts, acknowledged included, newest first"""
        return self._sorted(ALERTS)

    def get_active_alerts(self) -> List[Alert]:
        """Unacknowledged alerts, newest first"""
        return [alert for alert in self.list_alerts() if not alert.acknowledged]

    # ------------------------------------------------------------------
    # Projections
    # ------------------------------------------------------------------

    def stats(self) -> VillageRiskStats:
        return stats.aggregate(self.list_patients())

    def dashboard(self, today: Optional[date] = None) -> DashboardSummary:
        return stats.dashboard_summary(
            self.list_patients(),
            self.list_appointments(),
            active_alerts=len(self.get_active_alerts()),
            today=today,
        )

    def patient_report(self, patient_id: str, today: Optional[date] = None) -> PatientReport:
        """
        Report preview: patient, risk breakdown, visits and upcoming follow-ups
        """
        patient = self.get_patient(patient_id)
        tier = patient.assess_risk()
        bp: BloodPressure = patient.blood_pressure
        return PatientReport(
            patient=patient,
            risk_level=tier,
            risk_factors=risk_factors(bp.systolic, bp.diastolic, patient.sugar_level, patient.is_pregnant),
            recommended_action=recommended_action(tier),
            visits=self.list_visits_for_patient(patient_id),
            upcoming_appointments=[
                appointment for appointment in self.list_upcoming_appointments(today)
                if appointment.patient_id == patient_id
            ],
        )
