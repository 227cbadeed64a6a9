"""
Admin API. Only the configured ADMIN_EMAIL gets through.

GET  /v1/admin/purchases                      — Pending and completed requests, newest first
POST /v1/admin/purchases/{request_id}/complete — Pending → Completed
GET  /v1/admin/users                          — Registered users and history owners
GET  /v1/admin/users/{email}/history          — A user's saved styles
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import CurrentUser
from ..core.dependencies import get_db, require_admin
from ..schemas.styling import PurchaseRequest, PurchaseRequestStatus, StyleHistoryItem, UserProfile
from ..services import records

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["admin"])


class PurchaseDashboard(BaseModel):
    pending: list[PurchaseRequest] = []
    completed: list[PurchaseRequest] = []


@admin_router.get("/purchases", response_model=PurchaseDashboard)
async def list_purchases(
    db: AsyncSession = Depends(get_db),
):
    return PurchaseDashboard(
        pending=await records.list_purchase_requests(db, status=PurchaseRequestStatus.PENDING),
        completed=await records.list_purchase_requests(db, status=PurchaseRequestStatus.COMPLETED),
    )


@admin_router.post("/purchases/{request_id}/complete", response_model=PurchaseRequest)
async def complete_purchase(
    request_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    request = await records.complete_purchase_request(db, request_id)
    if request is None:
        raise HTTPException(status_code=404, detail="Purchase request not found")
    logger.info("Purchase request %s marked completed by %s", request_id, admin.email)
    return request


@admin_router.get("/users", response_model=list[UserProfile])
async def list_users(
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await records.list_users(db, exclude=admin.email)


@admin_router.get("/users/{email}/history", response_model=list[StyleHistoryItem])
async def user_history(
    email: str,
    db: AsyncSession = Depends(get_db),
):
    return await records.list_history(db, email.strip().lower())
