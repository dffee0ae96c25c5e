"""Mailbox gateways: where a session's mail is fetched from and sent to."""

from .base import MailboxGateway
from .demo_data import demo_messages
from .memory import InMemoryMailboxGateway

__all__ = ["InMemoryMailboxGateway", "MailboxGateway", "demo_messages"]
