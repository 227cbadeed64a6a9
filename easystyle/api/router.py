"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter, Depends

from ..core.dependencies import require_admin

router = APIRouter()


# ── Health (no auth) ─────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "easystyle"}


# ── V1 routes ───────────────────────────────────────────────────────

from .styling import styling_router
from .history import history_router
from .users import users_router
from .admin import admin_router

router.include_router(styling_router, prefix="/v1")
router.include_router(history_router, prefix="/v1")
router.include_router(users_router, prefix="/v1")
router.include_router(admin_router, prefix="/v1", dependencies=[Depends(require_admin)])
