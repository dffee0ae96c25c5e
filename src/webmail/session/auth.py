"""Session services: turn credentials into an identity."""

from __future__ import annotations

from typing import Protocol

import structlog

from webmail.exceptions import AuthenticationError
from webmail.models import Identity

logger = structlog.get_logger()


class SessionService(Protocol):
    async def authenticate(self, email_address: str, password: str) -> Identity: ...


def display_name_for(email_address: str) -> str:
    """Guess a display name from an address: ``jane.doe@x`` becomes ``Jane Doe``."""
    local_part = email_address.split("@")[0]
    words = local_part.replace(".", " ").replace("_", " ").replace("-", " ").split()
    return " ".join(word.capitalize() for word in words) or email_address


class DemoSessionService:
    """Accepts any non-empty credentials.

    Stands in for a real mail server login during development.
    """

    async def authenticate(self, email_address: str, password: str) -> Identity:
        """Authenticate a user.

        Raises:
            AuthenticationError: If the address or the password is empty.
        """
        email_address = (email_address or "").strip()
        if not email_address or not password:
            logger.info("login_rejected", email=email_address)
            raise AuthenticationError("Email address and password are required.")

        logger.info("login_accepted", email=email_address)
        return Identity(email_address=email_address, display_name=display_name_for(email_address))
