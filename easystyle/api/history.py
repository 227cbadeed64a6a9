"""
Style history API.

GET  /v1/history               — The caller's saved styles, newest first
GET  /v1/history/{item_id}     — One saved style
POST /v1/history/{item_id}/load  — Open a saved style in a styling session
GET  /v1/history/{item_id}/share — Share text for a saved style
GET  /v1/purchases             — The caller's purchase requests
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import CurrentUser
from ..core.dependencies import get_db, get_user
from ..schemas.styling import PurchaseRequest, StyleHistoryItem
from ..services import records
from ..services.session import create_session, get_session
from .views import StyleResultView, result_view

logger = logging.getLogger(__name__)

history_router = APIRouter(tags=["history"])

SHARE_TITLE = "EasyStyle AI Stylist"


class LoadRequest(BaseModel):
    session_id: Optional[str] = None


class ShareResponse(BaseModel):
    title: str
    text: str


async def _owned_item(db: AsyncSession, item_id: str, user: CurrentUser) -> StyleHistoryItem:
    item = await records.get_history(db, item_id, user_email=user.email)
    if item is None:
        raise HTTPException(status_code=404, detail="Style not found")
    return item


@history_router.get("/history", response_model=list[StyleHistoryItem])
async def list_history(
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    return await records.list_history(db, user.email)


@history_router.get("/history/{item_id}", response_model=StyleHistoryItem)
async def read_history(
    item_id: str,
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    return await _owned_item(db, item_id, user)


@history_router.post("/history/{item_id}/load", response_model=StyleResultView)
async def load_history(
    item_id: str,
    request: Optional[LoadRequest] = None,
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Load a saved style into a session (the given one, or a new one).
    Every product starts selected; a run still in flight on that session is discarded.
    """
    item = await _owned_item(db, item_id, user)

    session = None
    if request and request.session_id:
        session = get_session(request.session_id)
        if session is None or session.user_email != user.email:
            raise HTTPException(status_code=404, detail="Styling session not found")
    if session is None:
        session = create_session(user.email, item.original_image)

    session.load_history(item)
    return result_view(session)


@history_router.get("/history/{item_id}/share", response_model=ShareResponse)
async def share_history(
    item_id: str,
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    item = await _owned_item(db, item_id, user)
    return ShareResponse(
        title=SHARE_TITLE,
        text=f"AI가 추천해준 제 새로운 스타일을 확인해보세요! - {item.prompt}",
    )


@history_router.get("/purchases", response_model=list[PurchaseRequest])
async def list_my_purchases(
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    return await records.list_purchase_requests(db, user_email=user.email)
