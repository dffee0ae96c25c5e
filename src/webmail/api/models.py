"""API models for the webmail backend.

Request and response bodies use camelCase on the wire, matching the models in
:mod:`webmail.models`.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from webmail.models import (
    Attachment,
    CamelModel,
    ComposeAction,
    ComposePayload,
    ComposeState,
    Conversation,
    RuleAction,
    RuleCondition,
    UserFolder,
)


class LoginRequest(CamelModel):
    email: str
    password: str


class SessionResponse(CamelModel):
    email_address: str
    display_name: str


class ConversationListResponse(CamelModel):
    folder: str
    search_query: str
    conversations: list[Conversation]
    unread_counts: dict[str, int]


class ConversationIdsRequest(CamelModel):
    conversation_ids: list[str]


class MoveRequest(CamelModel):
    conversation_ids: list[str]
    target_folder: str


class StarRequest(CamelModel):
    email_id: str | None = None


class StarResponse(CamelModel):
    starred: bool | None


class ActionResponse(CamelModel):
    """Outcome of a mutation; ``applied`` is false when its target was gone."""

    applied: bool
    count: int = 0


class SelectionRequest(CamelModel):
    conversation_ids: list[str] | None = None


class SelectionResponse(CamelModel):
    selected: list[str]


class IncomingMessageRequest(CamelModel):
    """A message arriving from outside, e.g. a test harness or a mail hook."""

    id: str | None = None
    conversation_id: str | None = None
    sender_name: str
    sender_email: str
    recipient_email: str | None = None
    cc: str | None = None
    subject: str = ""
    body: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    timestamp: datetime | None = None


class OpenComposeRequest(CamelModel):
    action: ComposeAction = ComposeAction.NEW
    email_id: str | None = None


class DraftRequest(CamelModel):
    payload: ComposePayload
    draft_id: str | None = None
    conversation_id: str | None = None


class DraftResponse(CamelModel):
    draft_id: str | None


class AutosaveRequest(DraftRequest):
    compose_key: str


class SendRequest(DraftRequest):
    compose_key: str | None = None


class ScheduleRequest(SendRequest):
    send_at: datetime


class SendResponse(CamelModel):
    message_id: str | None
    pending: bool = False
    due_at: datetime | None = None


class UndoResponse(CamelModel):
    undone: bool
    compose: ComposeState | None = None


class SummaryResponse(CamelModel):
    conversation_id: str
    summary: str


class FolderRequest(CamelModel):
    name: str


class FoldersResponse(CamelModel):
    system: list[str]
    user: list[UserFolder]
    unread_counts: dict[str, int]


class RuleRequest(CamelModel):
    condition: RuleCondition
    action: RuleAction
