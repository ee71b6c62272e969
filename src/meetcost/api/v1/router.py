"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.meetcost.api.v1 import dashboard, health, meetings

API_PREFIX = "/api/v1"

router = APIRouter()

router.include_router(health.router)
router.include_router(meetings.router, prefix=API_PREFIX)
router.include_router(dashboard.router, prefix=API_PREFIX)
