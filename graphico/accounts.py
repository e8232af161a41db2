"""
accounts.py — Login-or-register by email.

There is no credential check: whoever types an email becomes that user.
An existing record is reused verbatim (a newly typed name is ignored).
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import UserInputError
from .models import DEFAULT_USER_NAME, User
from .storage import StorageGateway

logger = logging.getLogger(__name__)


def login_or_register(gateway: StorageGateway, name: Optional[str], email: str) -> User:
    """Return the stored user for `email`, registering a new one first if needed, and open a session."""
    email = (email or "").strip()
    if not email:
        raise UserInputError("An email is required to log in")

    user = gateway.find_user_by_email(email)
    if user is None:
        user = gateway.register_user(User(name=(name or "").strip() or DEFAULT_USER_NAME, email=email))
        logger.info(f"Registered new user {email}")

    gateway.save_session(user)
    return user


def logout(gateway: StorageGateway) -> None:
    gateway.clear_session()
