"""
Saved styles and purchase requests.
Products are stored as JSON snapshots; later catalog changes do not touch them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text, JSON, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .base import RecordBase, UTCDateTime


class StyleHistory(RecordBase):
    __tablename__ = "style_history"

    prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    original_image_base64: Mapped[str] = mapped_column(Text, nullable=False)
    original_mime_type: Mapped[str] = mapped_column(String, nullable=False)
    styled_image_base64: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    products: Mapped[list] = mapped_column(JSON, nullable=False, default=list)


class PurchaseRequestRecord(RecordBase):
    __tablename__ = "purchase_requests"

    products: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    total_price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Pending", index=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
