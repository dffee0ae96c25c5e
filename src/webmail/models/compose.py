"""Compose surface models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from webmail.models.message import Attachment, CamelModel


class ComposeAction(str, Enum):
    """Why a compose surface was opened."""

    NEW = "new"
    REPLY = "reply"
    FORWARD = "forward"
    DRAFT = "draft"


class ComposePayload(CamelModel):
    """What the user typed into a compose surface."""

    to: str = ""
    cc: str | None = None
    bcc: str | None = None
    subject: str = ""
    body: str = ""
    attachments: list[Attachment] = Field(default_factory=list)


class ComposeState(CamelModel):
    """A compose surface the UI should show, prefilled."""

    is_open: bool = True
    action: ComposeAction = ComposeAction.NEW
    draft_id: str | None = None
    conversation_id: str | None = None
    initial_data: ComposePayload | None = None
