from fastapi import APIRouter

from brandpulse.api.v1.catalog import router as catalog_router
from brandpulse.api.v1.executions import router as executions_router
from brandpulse.api.v1.overlay import router as overlay_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(executions_router)
api_v1_router.include_router(catalog_router)
api_v1_router.include_router(overlay_router)
