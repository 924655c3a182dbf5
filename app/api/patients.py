"""
Patient management endpoints
"""
from typing import List

from fastapi import APIRouter, Request

from app.database.schemas import Patient, PatientInput, PatientReport, PatientUpdate, Visit
from app.api.utils import get_store

router = APIRouter()


@router.post("/patients", response_model=Patient)
async def create_patient(patient: PatientInput, request: Request):
    """
    Save patient (intake form)

    Risk tier is computed from the submitted vitals and stored with the record.
    """
    return await get_store(request).add_patient(patient)


@router.get("/patients", response_model=List[Patient])
async def list_patients(request: Request):
    """
    All patients, newest first
    """
    return get_store(request).list_patients()


@router.get("/patients/search", response_model=List[Patient])
async def search_patients(request: Request, q: str = ""):
    """
    Search by name, village or phone number
    """
    return get_store(request).search_patients(q)


@router.get("/patients/high-risk", response_model=List[Patient])
async def list_high_risk_patients(request: Request):
    return get_store(request).list_high_risk_patients()


@router.get("/patients/{patient_id}", response_model=Patient)
async def get_patient(patient_id: str, request: Request):
    return get_store(request).get_patient(patient_id)


@router.patch("/patients/{patient_id}", response_model=Patient)
async def update_patient(patient_id: str, patient_updates: PatientUpdate, request: Request):
    """
    Update patient details

    Only the fields present in the request change. Risk is re-derived when
    any vital changes.
    """
    return await get_store(request).update_patient(patient_id, patient_updates)


@router.delete("/patients/{patient_id}")
async def delete_patient(patient_id: str, request: Request):
    """
    Delete a patient
    Returns 404 if the patient does not exist so DELETE never silently succeeds twice
    """
    await get_store(request).delete_patient(patient_id)
    return {"message": "Patient deleted successfully", "id": patient_id}


@router.get("/patients/{patient_id}/visits", response_model=List[Visit])
async def list_patient_visits(patient_id: str, request: Request):
    store = get_store(request)
    store.get_patient(patient_id)
    return store.list_visits_for_patient(patient_id)


@router.get("/patients/{patient_id}/report", response_model=PatientReport)
async def get_patient_report(patient_id: str, request: Request):
    """
    Report preview for one patient
    """
    return get_store(request).patient_report(patient_id)
