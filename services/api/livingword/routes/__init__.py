"""API routes."""

from fastapi import APIRouter

from livingword.routes import cron, devices, verses

api_router = APIRouter()

# Client endpoints
api_router.include_router(verses.router, prefix="/api", tags=["verses"])
api_router.include_router(devices.router, prefix="/api", tags=["devices"])

# Cron endpoints (called by an external scheduler)
api_router.include_router(cron.router, prefix="/api/cron", tags=["cron"])
