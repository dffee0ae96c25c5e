"""Authentication and per-user mail sessions."""

from .auth import DemoSessionService, SessionService
from .registry import MailSession, SessionRegistry

__all__ = ["DemoSessionService", "MailSession", "SessionRegistry", "SessionService"]
