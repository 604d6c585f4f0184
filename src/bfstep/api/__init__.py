from __future__ import annotations

from fastapi import APIRouter

from bfstep.api.routes.health import router as health_router
from bfstep.api.routes.session import router as session_router

# Top-level API router
router = APIRouter()

# Route composition
router.include_router(health_router)
router.include_router(session_router)
