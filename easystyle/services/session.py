"""
Styling sessions — the per-user working state between HTTP requests.

A session holds the uploaded photo, the prompt, the current result and the
selection. Results are applied through a generation token so a slow run that
was superseded (new run started, history item loaded) cannot overwrite newer
state.

Sessions live in process memory, keyed by session id, and are dropped after
SESSION_IDLE_SECONDS without access. They are scratch state: anything worth
keeping is saved through services.records.
"""

import logging
import time
import uuid
from typing import Optional

from ..core.config import get_settings
from ..schemas.styling import (
    FollowUpQuestion,
    Product,
    SourceImage,
    StyleHistoryItem,
    StyleResult,
)
from . import selection as sel

logger = logging.getLogger(__name__)

FOLLOW_UP_SEPARATOR = "\n\n추가 정보: "


class StylingSession:
    def __init__(self, session_id: str, user_email: str, original_image: SourceImage):
        self.session_id = session_id
        self.user_email = user_email
        self.original_image = original_image
        self.prompt = ""
        self.question: Optional[FollowUpQuestion] = None
        self.result: Optional[StyleResult] = None
        self.selection: sel.Selection = {}
        self.generation = 0
        self.saved = False
        self.history_id: Optional[str] = None
        self.last_access = time.monotonic()

    def touch(self) -> None:
        self.last_access = time.monotonic()

    # ── Prompt ───────────────────────────────────────────────────────

    def set_prompt(self, prompt: str, question: Optional[FollowUpQuestion] = None) -> None:
        self.prompt = prompt
        self.question = question

    def final_prompt(self, answer: str = "") -> str:
        """The prompt sent to the planner: the request plus the follow-up answer, if any."""
        answer = answer.strip()
        return f"{self.prompt}{FOLLOW_UP_SEPARATOR}{answer}" if answer else self.prompt

    # ── Results ──────────────────────────────────────────────────────

    def begin_generation(self) -> int:
        """Start a new run. Clears the current result and returns the run's token."""
        self.generation += 1
        self.result = None
        self.selection = {}
        self.saved = False
        self.history_id = None
        return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation

    def apply_result(self, token: int, result: StyleResult) -> bool:
        """Install a finished run's result. Stale tokens are ignored (returns False)."""
        if not self.is_current(token):
            logger.info(
                "Discarding stale result for session %s (run %d, current %d)",
                self.session_id, token, self.generation,
            )
            return False
        self.result = result
        self.selection = sel.select_all(result.products)
        self.question = None
        return True

    def load_history(self, item: StyleHistoryItem) -> None:
        """Show a saved style. Invalidates any run still in flight."""
        self.generation += 1
        self.original_image = item.original_image
        self.prompt = item.prompt
        self.question = None
        self.result = StyleResult(
            image_base64=item.styled_result.image_base64,
            description=item.styled_result.description,
            products=item.products,
        )
        self.selection = sel.select_all(item.products)
        self.saved = True
        self.history_id = item.id

    def reset(self) -> None:
        """Start over with the same photo. A run still in flight is discarded."""
        self.begin_generation()
        self.prompt = ""
        self.question = None

    # ── Selection ────────────────────────────────────────────────────

    def find_product(self, product_url: str) -> Optional[Product]:
        if self.result is None:
            return None
        for product in self.result.products:
            if product.product_url == product_url:
                return product
        return None

    def toggle(self, product_url: str) -> None:
        """Toggle a product of the current result. KeyError if it isn't part of it."""
        product = self.find_product(product_url)
        if product is None:
            raise KeyError(product_url)
        self.selection = sel.toggle(self.selection, product)

    @property
    def selected_products(self) -> list[Product]:
        return list(self.selection.values())

    @property
    def total_price(self) -> int:
        return sel.total(self.selection)

    @property
    def grouped_products(self) -> dict[str, list[Product]]:
        return sel.group_products(self.result.products if self.result else [])


# ── In-memory session registry ───────────────────────────────────────

_sessions: dict[str, StylingSession] = {}


def create_session(user_email: str, original_image: SourceImage) -> StylingSession:
    evict_idle()
    session = StylingSession(uuid.uuid4().hex, user_email, original_image)
    _sessions[session.session_id] = session
    logger.debug("Created styling session %s (%d active)", session.session_id, len(_sessions))
    return session


def get_session(session_id: str) -> Optional[StylingSession]:
    evict_idle()
    session = _sessions.get(session_id)
    if session is not None:
        session.touch()
    return session


def remove_session(session_id: str) -> bool:
    """Drop a session. Returns False if it was already gone."""
    removed = _sessions.pop(session_id, None) is not None
    if removed:
        logger.debug("Removed styling session %s (%d active)", session_id, len(_sessions))
    return removed


def evict_idle(max_idle: Optional[float] = None, now: Optional[float] = None) -> int:
    """Drop sessions not accessed for max_idle seconds (default SESSION_IDLE_SECONDS)."""
    if max_idle is None:
        max_idle = get_settings().session_idle_seconds
    if now is None:
        now = time.monotonic()

    expired = [sid for sid, s in _sessions.items() if now - s.last_access > max_idle]
    for sid in expired:
        del _sessions[sid]
    if expired:
        logger.info("Evicted %d idle styling sessions (%d active)", len(expired), len(_sessions))
    return len(expired)


def clear_sessions() -> None:
    _sessions.clear()
