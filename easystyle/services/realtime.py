"""
Realtime notifications. Thin wrapper around core.redis.
Typed event helpers for the styling pipeline.
"""

from ..core import redis as _redis


async def styling_progress(session_id: str, stage: str):
    await _redis.notify_session(session_id, "styling.progress", {"stage": stage})


async def styling_completed(session_id: str, product_count: int):
    await _redis.notify_session(
        session_id, "styling.completed", {"products": product_count}
    )


async def styling_error(session_id: str, message: str):
    await _redis.notify_session(session_id, "styling.error", {"message": message})
