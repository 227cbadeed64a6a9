"""
Style history, purchase requests and user profiles. Thin async CRUD over SQLAlchemy.

Rows store products as JSON snapshots; callers get pydantic records back.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.style import PurchaseRequestRecord, StyleHistory
from ..models.user import User
from ..schemas.styling import (
    Product,
    PurchaseRequest,
    PurchaseRequestStatus,
    SourceImage,
    StyledImage,
    StyleHistoryItem,
    UserProfile,
)
from .selection import select_all, total
from .session import StylingSession

logger = logging.getLogger(__name__)


def _dump_products(products: list[Product]) -> list[dict]:
    return [p.model_dump(mode="json", by_alias=True) for p in products]


def _load_products(raw: Optional[list]) -> list[Product]:
    return [Product.model_validate(p) for p in raw or []]


def _history_item(row: StyleHistory) -> StyleHistoryItem:
    return StyleHistoryItem(
        id=row.id,
        user_email=row.user_email,
        created_at=row.created_at,
        original_image=SourceImage(
            base64=row.original_image_base64,
            mime_type=row.original_mime_type,
        ),
        styled_result=StyledImage(
            image_base64=row.styled_image_base64,
            description=row.description,
        ),
        products=_load_products(row.products),
        prompt=row.prompt,
    )


def _purchase_request(row: PurchaseRequestRecord) -> PurchaseRequest:
    return PurchaseRequest(
        id=row.id,
        user_email=row.user_email,
        products=_load_products(row.products),
        total_price=row.total_price,
        status=PurchaseRequestStatus(row.status),
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


# ── Style history ────────────────────────────────────────────────────


async def save_history(db: AsyncSession, session: StylingSession) -> StyleHistoryItem:
    """Save the session's current result for its user. ValueError if there is none."""
    if session.result is None:
        raise ValueError("Nothing to save: the session has no style result")

    row = StyleHistory(
        user_email=session.user_email,
        prompt=session.prompt,
        original_image_base64=session.original_image.base64,
        original_mime_type=session.original_image.mime_type,
        styled_image_base64=session.result.image_base64,
        description=session.result.description,
        products=_dump_products(session.result.products),
    )
    db.add(row)
    await db.flush()

    logger.info("Saved style %s for %s", row.id, session.user_email)
    return _history_item(row)


async def list_history(db: AsyncSession, user_email: str) -> list[StyleHistoryItem]:
    """A user's saved styles, newest first."""
    result = await db.execute(
        select(StyleHistory)
        .where(StyleHistory.user_email == user_email)
        .order_by(StyleHistory.created_at.desc())
    )
    return [_history_item(row) for row in result.scalars().all()]


async def get_history(
    db: AsyncSession, item_id: str, user_email: Optional[str] = None
) -> Optional[StyleHistoryItem]:
    """Fetch one saved style. With user_email, only that user's items match."""
    query = select(StyleHistory).where(StyleHistory.id == item_id)
    if user_email is not None:
        query = query.where(StyleHistory.user_email == user_email)
    result = await db.execute(query)
    row = result.scalar_one_or_none()
    return _history_item(row) if row else None


async def list_history_owners(db: AsyncSession, exclude: Optional[str] = None) -> list[str]:
    """E-mails of every user with saved styles, sorted."""
    result = await db.execute(
        select(StyleHistory.user_email).distinct().order_by(StyleHistory.user_email)
    )
    return [email for email in result.scalars().all() if email != exclude]


# ── Purchase requests ────────────────────────────────────────────────


async def create_purchase_request(
    db: AsyncSession, user_email: str, products: list[Product]
) -> PurchaseRequest:
    """Record a pending request for a snapshot of the products. ValueError if empty."""
    if not products:
        raise ValueError("요청할 상품을 선택해주세요.")

    row = PurchaseRequestRecord(
        user_email=user_email,
        products=_dump_products(products),
        total_price=total(select_all(products)),
        status=PurchaseRequestStatus.PENDING.value,
    )
    db.add(row)
    await db.flush()

    logger.info(
        "Purchase request %s: %s, %d items, %d KRW",
        row.id, user_email, len(products), row.total_price,
    )
    return _purchase_request(row)


async def list_purchase_requests(
    db: AsyncSession,
    status: Optional[PurchaseRequestStatus] = None,
    user_email: Optional[str] = None,
) -> list[PurchaseRequest]:
    """Purchase requests, newest first, optionally filtered by status and user."""
    query = select(PurchaseRequestRecord).order_by(PurchaseRequestRecord.created_at.desc())
    if status is not None:
        query = query.where(PurchaseRequestRecord.status == status.value)
    if user_email is not None:
        query = query.where(PurchaseRequestRecord.user_email == user_email)
    result = await db.execute(query)
    return [_purchase_request(row) for row in result.scalars().all()]


async def complete_purchase_request(
    db: AsyncSession, request_id: str
) -> Optional[PurchaseRequest]:
    """Mark a request Completed. Already-completed requests are returned unchanged."""
    row = await db.get(PurchaseRequestRecord, request_id)
    if row is None:
        return None

    if row.status != PurchaseRequestStatus.COMPLETED.value:
        row.status = PurchaseRequestStatus.COMPLETED.value
        row.completed_at = utcnow()
        await db.flush()
        logger.info("Purchase request %s completed", request_id)

    return _purchase_request(row)


# ── Users ────────────────────────────────────────────────────────────


def _user_profile(row: User) -> UserProfile:
    return UserProfile(
        email=row.email,
        name=row.name,
        phone=row.phone,
        created_at=row.created_at,
    )


async def upsert_user(db: AsyncSession, email: str, name: str, phone: str = "") -> UserProfile:
    """Register a user, or update the name and phone of an existing one."""
    row = await db.get(User, email)
    if row is None:
        row = User(email=email, name=name, phone=phone)
        db.add(row)
        logger.info("Registered user %s", email)
    else:
        row.name = name
        row.phone = phone
    await db.flush()
    return _user_profile(row)


async def get_user_profile(db: AsyncSession, email: str) -> Optional[UserProfile]:
    row = await db.get(User, email)
    return _user_profile(row) if row else None


async def list_users(db: AsyncSession, exclude: Optional[str] = None) -> list[UserProfile]:
    """
    Every registered user plus anyone with saved styles who never registered,
    sorted by e-mail.
    """
    result = await db.execute(select(User).order_by(User.email))
    profiles = {row.email: _user_profile(row) for row in result.scalars().all()}

    for email in await list_history_owners(db):
        if email not in profiles:
            profiles[email] = UserProfile(email=email, registered=False)

    return [profiles[email] for email in sorted(profiles) if email != exclude]
