"""
FastAPI dependencies. Injected into route handlers.
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import CurrentUser, resolve_user
from .database import get_db as _get_db


async def get_db() -> AsyncSession:
    """Yields an async DB session per request."""
    async for session in _get_db():
        yield session


async def get_user(
    x_user_email: str = Header(default=""),
) -> CurrentUser:
    """Resolve the caller from the X-User-Email header."""
    try:
        return resolve_user(x_user_email)
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


async def require_admin(
    user: CurrentUser = Depends(get_user),
) -> CurrentUser:
    """Same as get_user, but only the configured admin gets through."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def get_pipeline():
    """Returns a styling pipeline wired to Gemini and the mock shopping search."""
    from ..services.gemini import GeminiGateway
    from ..services.pipeline import StylingPipeline
    from ..services.shopping import MockShoppingSearch
    from .flags import get_flags

    return StylingPipeline(
        ai=GeminiGateway(),
        search=MockShoppingSearch(),
        enable_cropping=get_flags().enable_cropping,
    )
