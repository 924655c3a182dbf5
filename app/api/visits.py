"""
Visit (voice recording) endpoints
"""
from typing import List

from fastapi import APIRouter, Request

from app.database.schemas import Alert, Visit, VisitCreated, VisitInput
from app.api.utils import get_store

router = APIRouter()


@router.post("/visits", response_model=VisitCreated)
async def create_visit(visit: VisitInput, request: Request):
    """
    Record a visit

    A HIGH-risk visit also creates an emergency alert, returned alongside.
    If the visit is stored but the alert is not, the response is 503 with
    `missing: "alerts"` and the stored visit; retry with POST /visits/{id}/alert.
    """
    store = get_store(request)
    created = await store.add_visit(visit)
    return VisitCreated(visit=created, alert=store.get_alert_for_visit(created.id))


@router.get("/visits", response_model=List[Visit])
async def list_visits(request: Request):
    return get_store(request).list_visits()


@router.get("/visits/{visit_id}", response_model=Visit)
async def get_visit(visit_id: str, request: Request):
    return get_store(request).get_visit(visit_id)


@router.post("/visits/{visit_id}/alert", response_model=Alert)
async def create_visit_alert(visit_id: str, request: Request):
    """
    Create the missing alert for a HIGH-risk visit
    """
    return await get_store(request).create_alert_for_visit(visit_id)
