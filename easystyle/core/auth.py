"""
Caller identity. Users are identified by e-mail only (X-User-Email header).

There are no passwords or tokens here; the admin is whoever sends the
configured ADMIN_EMAIL.
"""

import logging
from dataclasses import dataclass

from .config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    email: str
    is_admin: bool = False


def resolve_user(email: str = "") -> CurrentUser:
    """
    Build the current user from the X-User-Email header value.
    Raises PermissionError if the header is missing or not an e-mail.
    """
    email = (email or "").strip().lower()
    if not email:
        raise PermissionError("Missing X-User-Email header")
    if "@" not in email:
        raise PermissionError("X-User-Email must be an e-mail address")

    admin_email = get_settings().admin_email.strip().lower()
    return CurrentUser(email=email, is_admin=email == admin_email)
