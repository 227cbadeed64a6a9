"""
All database models. Imported here so Base.metadata sees them for create_all().
"""

from .base import RecordBase
from .style import StyleHistory, PurchaseRequestRecord
from .user import User

__all__ = [
    "RecordBase",
    "StyleHistory",
    "PurchaseRequestRecord",
    "User",
]
