"""
API Router - JSON Endpoints
"""
from fastapi import APIRouter
from datetime import datetime

from shiptrack import __version__
from shiptrack.api.auth import router as auth_router
from shiptrack.api.shipments import router as shipments_router
from shiptrack.api.trainings import router as trainings_router, sops_router
from shiptrack.api.items import router as items_router
from shiptrack.api.manufacturing import router as manufacturing_router
from shiptrack.api.users import (
    router as registrations_router, managers_router, dashboard_router,
)

api_router = APIRouter(tags=["API"])

# Include sub-routers
api_router.include_router(auth_router)
api_router.include_router(registrations_router)
api_router.include_router(managers_router)
api_router.include_router(dashboard_router)
api_router.include_router(shipments_router)
api_router.include_router(sops_router)
api_router.include_router(trainings_router)
api_router.include_router(items_router)
api_router.include_router(manufacturing_router)

# ===================== HEALTH & STATUS =====================

@api_router.get("/status")
async def api_status():
    return {"status": "ok", "version": __version__, "timestamp": datetime.now().isoformat()}
