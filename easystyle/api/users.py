"""
User profile API.

GET /v1/users/me — The caller's profile (404 until registered)
PUT /v1/users/me — Register, or update name and phone
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import CurrentUser
from ..core.dependencies import get_db, get_user
from ..schemas.styling import CamelModel, UserProfile
from ..services import records

logger = logging.getLogger(__name__)

users_router = APIRouter(prefix="/users", tags=["users"])


class ProfileRequest(CamelModel):
    name: str = Field(min_length=1)
    phone: str = ""


@users_router.get("/me", response_model=UserProfile)
async def read_profile(
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await records.get_user_profile(db, user.email)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not registered")
    return profile


@users_router.put("/me", response_model=UserProfile)
async def update_profile(
    request: ProfileRequest,
    user: CurrentUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    name = request.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="이름을 입력해주세요.")
    return await records.upsert_user(db, user.email, name, request.phone.strip())
