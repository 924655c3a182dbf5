# API routes
from fastapi import APIRouter
from app.api.patients import router as patients_router
from app.api.appointments import router as appointments_router
from app.api.visits import router as visits_router
from app.api.alerts import router as alerts_router
from app.api.dashboard import router as dashboard_router
from app.api.voice import router as voice_router

# Combine all routers
router = APIRouter()
router.include_router(patients_router)
router.include_router(appointments_router)
router.include_router(visits_router)
router.include_router(alerts_router)
router.include_router(dashboard_router)
router.include_router(voice_router)

__all__ = ["router"]
