"""
Styling API.

POST /v1/styling/sessions                           — Upload a photo, start a session
GET  /v1/styling/sessions/{session_id}              — Current state of a session
DELETE /v1/styling/sessions/{session_id}           — Discard a session
POST /v1/styling/sessions/{session_id}/reset        — Start over with the same photo
POST /v1/styling/sessions/{session_id}/question     — Prompt → AI follow-up question
POST /v1/styling/sessions/{session_id}/generate     — Run the styling pipeline
POST /v1/styling/sessions/{session_id}/selection/toggle — Toggle one product
POST /v1/styling/sessions/{session_id}/save         — Save the result to history
POST /v1/styling/sessions/{session_id}/purchase     — Purchase request for the selection
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import CurrentUser
from ..core.config import get_settings
from ..core.dependencies import get_db, get_pipeline, get_user
from ..core.errors import StylingError
from ..schemas.styling import CamelModel, FollowUpQuestion, PurchaseRequest, StyleHistoryItem
from ..services import realtime, records
from ..services.images import decode_upload
from ..services.pipeline import StylingPipeline
from ..services.session import StylingSession, create_session, get_session, remove_session
from .views import StyleResultView, result_view

logger = logging.getLogger(__name__)

styling_router = APIRouter(prefix="/styling", tags=["styling"])


# ── Request models ────────────────────────────────────────────────────

class CreateSessionRequest(BaseModel):
    """Photo as base64: data:image/png;base64,... or raw base64."""
    image: str


class QuestionRequest(BaseModel):
    prompt: str


class GenerateRequest(BaseModel):
    answer: Optional[str] = None


class ToggleRequest(CamelModel):
    product_url: str


def _owned_session(session_id: str, user: CurrentUser) -> StylingSession:
    session = get_session(session_id)
    if session is None or session.user_email != user.email:
        raise HTTPException(status_code=404, detail="Styling session not found")
    return session


def _http_error(e: StylingError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


# ── Session ───────────────────────────────────────────────────────────

@styling_router.post("/sessions", response_model=StyleResultView, status_code=201)
async def start_session(
    request: CreateSessionRequest,
    user: CurrentUser = Depends(get_user),
):
    """Upload the user's photo. Formats the model can't read are converted to JPEG."""
    try:
        image = decode_upload(request.image, max_bytes=get_settings().max_upload_bytes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session = create_session(user.email, image)
    logger.info("Styling session %s started for %s (%s)", session.session_id, user.email, image.mime_type)
    return result_view(session)


@styling_router.get("/sessions/{session_id}", response_model=StyleResultView)
async def read_session(
    session_id: str,
    user: CurrentUser = Depends(get_user),
):
    return result_view(_owned_session(session_id, user))


@styling_router.delete("/sessions/{session_id}", status_code=204)
async def end_session(
    session_id: str,
    user: CurrentUser = Depends(get_user),
):
    """Discard the session and its images. Saved history is not touched."""
    _owned_session(session_id, user)
    remove_session(session_id)


@styling_router.post("/sessions/{session_id}/reset", response_model=StyleResultView)
async def reset_session(
    session_id: str,
    user: CurrentUser = Depends(get_user),
):
    """Clear prompt and result, keep the photo."""
    session = _owned_session(session_id, user)
    session.reset()
    return result_view(session)


# ── Pipeline ──────────────────────────────────────────────────────────

@styling_router.post("/sessions/{session_id}/question", response_model=FollowUpQuestion)
async def ask_follow_up(
    session_id: str,
    request: QuestionRequest,
    user: CurrentUser = Depends(get_user),
    pipeline: StylingPipeline = Depends(get_pipeline),
):
    """Store the style prompt and return the AI's clarifying question."""
    session = _owned_session(session_id, user)
    prompt = request.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="어떤 스타일을 원하시는지 입력해주세요.")

    try:
        question = await pipeline.propose_follow_up_question(prompt)
    except StylingError as e:
        raise _http_error(e)

    session.set_prompt(prompt, question)
    return question


@styling_router.post("/sessions/{session_id}/generate", response_model=StyleResultView)
async def generate(
    session_id: str,
    request: GenerateRequest,
    user: CurrentUser = Depends(get_user),
    pipeline: StylingPipeline = Depends(get_pipeline),
):
    """
    Run the full pipeline with the stored prompt plus the follow-up answer.

    Progress is published on the session's realtime channel. If another run
    or a history load supersedes this one while it is in flight, its result
    is discarded and 409 is returned.
    """
    session = _owned_session(session_id, user)
    if not session.prompt:
        raise HTTPException(status_code=400, detail="어떤 스타일을 원하시는지 입력해주세요.")

    final_prompt = session.final_prompt(request.answer or "")
    token = session.begin_generation()

    async def on_progress(stage: str) -> None:
        await realtime.styling_progress(session.session_id, stage)

    try:
        result = await pipeline.execute_style_generation(
            session.original_image, final_prompt, on_progress=on_progress,
        )
    except StylingError as e:
        await realtime.styling_error(session.session_id, e.message)
        raise _http_error(e)

    if not session.apply_result(token, result):
        raise HTTPException(status_code=409, detail="A newer styling run replaced this one")

    await realtime.styling_completed(session.session_id, len(result.products))
    return result_view(session)


# ── Selection / save / purchase ───────────────────────────────────────

@styling_router.post("/sessions/{session_id}/selection/toggle", response_model=StyleResultView)
async def toggle_product(
    session_id: str,
    request: ToggleRequest,
    user: CurrentUser = Depends(get_user),
):
    session = _owned_session(session_id, user)
    try:
        session.toggle(request.product_url)
    except KeyError:
        raise HTTPException(status_code=404, detail="Product not in the current result")
    return result_view(session)


@styling_router.post("/sessions/{session_id}/save", response_model=StyleHistoryItem, status_code=201)
async def save_style(
    session_id: str,
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    """Save the current result to the user's style history."""
    session = _owned_session(session_id, user)
    if session.result is None:
        raise HTTPException(status_code=400, detail="No style result to save")
    if session.saved:
        raise HTTPException(status_code=409, detail="This style is already saved")

    item = await records.save_history(db, session)
    session.saved = True
    session.history_id = item.id
    return item


@styling_router.post("/sessions/{session_id}/purchase", response_model=PurchaseRequest, status_code=201)
async def request_purchase(
    session_id: str,
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit the selected products as a purchase request for admin review."""
    session = _owned_session(session_id, user)
    try:
        return await records.create_purchase_request(db, user.email, session.selected_products)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
