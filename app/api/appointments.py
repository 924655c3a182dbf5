"""
Follow-up appointment endpoints
"""
from typing import List

from fastapi import APIRouter, Request

from app.database.schemas import Appointment, AppointmentInput, AppointmentUpdate, AppointmentView
from app.api.utils import get_store

router = APIRouter()


def _views(store, appointments: List[Appointment]) -> List[AppointmentView]:
    return [
        AppointmentView(
            appointment=appointment,
            patient_label=store.resolve_patient_name(appointment.patient_id, appointment.patient_name),
        )
        for appointment in appointments
    ]


@router.post("/appointments", response_model=Appointment)
async def create_appointment(appointment: AppointmentInput, request: Request):
    """
    Schedule a follow-up

    No conflict check: two appointments may share a date and time.
    """
    return await get_store(request).add_appointment(appointment)


@router.get("/appointments", response_model=List[AppointmentView])
async def list_appointments(request: Request):
    store = get_store(request)
    return _views(store, store.list_appointments())


@router.get("/appointments/upcoming", response_model=List[AppointmentView])
async def list_upcoming_appointments(request: Request):
    """
    Appointments from today (UTC) onwards, soonest first

    Patients that no longer exist show their stored name or "Unknown".
    """
    store = get_store(request)
    return _views(store, store.list_upcoming_appointments())


@router.get("/appointments/{appointment_id}", response_model=Appointment)
async def get_appointment(appointment_id: str, request: Request):
    return get_store(request).get_appointment(appointment_id)


@router.patch("/appointments/{appointment_id}", response_model=Appointment)
async def update_appointment(appointment_id: str, updates: AppointmentUpdate, request: Request):
    return await get_store(request).update_appointment(appointment_id, updates)


@router.delete("/appointments/{appointment_id}")
async def delete_appointment(appointment_id: str, request: Request):
    await get_store(request).delete_appointment(appointment_id)
    return {"message": "Appointment deleted successfully", "id": appointment_id}
