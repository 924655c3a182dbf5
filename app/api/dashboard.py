"""
Dashboard, statistics and notification endpoints
"""
from typing import List

from fastapi import APIRouter, Request

from app.database.schemas import DashboardSummary, Notification, VillageRiskStats
from app.api.utils import get_notifier, get_store

router = APIRouter()


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(request: Request):
    """
    Dashboard counters

    today_followups uses today's UTC date; upcoming_visits counts
    appointments strictly after today.
    """
    return get_store(request).dashboard()


@router.get("/stats", response_model=VillageRiskStats)
async def get_stats(request: Request):
    """
    Patient counts per village and per risk tier
    """
    return get_store(request).stats()


@router.get("/notifications", response_model=List[Notification])
async def list_notifications(request: Request):
    """
    Recent notifications (newest first) for clients that poll
    """
    return get_notifier(request).recent()
