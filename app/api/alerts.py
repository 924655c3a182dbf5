"""
Emergency alert endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Request

from app.database.schemas import AcknowledgeRequest, Alert
from app.api.utils import get_store

router = APIRouter()


@router.get("/alerts", response_model=List[Alert])
async def list_alerts(request: Request):
    """
    All alerts including acknowledged ones, newest first
    """
    return get_store(request).list_alerts()


@router.get("/alerts/active", response_model=List[Alert])
async def list_active_alerts(request: Request):
    return get_store(request).get_active_alerts()


@router.get("/alerts/{alert_id}", response_model=Alert)
async def get_alert(alert_id: str, request: Request):
    return get_store(request).get_alert(alert_id)


@router.post("/alerts/{alert_id}/acknowledge", response_model=Alert)
async def acknowledge_alert(
    alert_id: str,
    request: Request,
    body: Optional[AcknowledgeRequest] = Body(None),
):
    """
    Acknowledge an alert

    Returns 409 if the alert was already acknowledged.
    """
    acknowledged_by = body.acknowledged_by if body else None
    return await get_store(request).acknowledge_alert(alert_id, acknowledged_by)
