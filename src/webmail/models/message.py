"""Message, conversation and folder models.

Messages are frozen: a mutation builds a new, re-validated record. Validation
is also where the folder / scheduled-send-time coupling is enforced, so no
code path can leave a scheduled time on a message outside Scheduled.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from webmail.utils import ensure_aware, make_snippet


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the browser UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SystemFolder(str, Enum):
    """Fixed folders every mailbox has.

    STARRED is a view over starred conversations, not a place a message can
    live in.
    """

    INBOX = "Inbox"
    STARRED = "Starred"
    SENT = "Sent"
    DRAFTS = "Drafts"
    SCHEDULED = "Scheduled"
    SPAM = "Spam"
    TRASH = "Trash"


STORAGE_FOLDERS: tuple[str, ...] = tuple(
    f.value for f in SystemFolder if f is not SystemFolder.STARRED
)


def folder_name(folder: str | SystemFolder) -> str:
    """Return the plain string name of a folder."""
    if isinstance(folder, SystemFolder):
        return folder.value
    return folder


class Attachment(CamelModel):
    """Attachment metadata; payloads never reach the mailbox engine."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    file_name: str = Field(description="Attachment file name")
    file_size: int = Field(default=0, ge=0, description="Size in bytes")


class Message(CamelModel):
    """A single email record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(min_length=1, description="Unique message ID")
    conversation_id: str = Field(default="", description="Thread ID; defaults to the message ID")

    sender_name: str = Field(default="", description="Display name of the sender")
    sender_email: str = Field(default="", description="Sender email address")
    recipient_email: str = Field(default="", description="Recipient address list as typed")
    cc: str | None = Field(default=None, description="Cc address list")
    bcc: str | None = Field(default=None, description="Bcc address list")

    subject: str = Field(default="", description="Subject line")
    body: str = Field(default="", description="HTML body")
    snippet: str = Field(default="", description="Plain-text preview derived from the body")

    timestamp: datetime = Field(description="Creation or receipt instant")
    is_read: bool = Field(default=False, description="Whether the message was read")
    is_starred: bool = Field(default=False, description="Whether the message is starred")
    folder: str = Field(default=SystemFolder.INBOX.value, description="Folder holding the message")

    attachments: list[Attachment] = Field(default_factory=list, description="Attachment metadata")
    scheduled_send_time: datetime | None = Field(
        default=None, description="When a Scheduled message goes out"
    )

    @model_validator(mode="before")
    @classmethod
    def _fill_derived_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)

        message_id = data.get("id")
        if not (data.get("conversation_id") or data.get("conversationId")):
            data.pop("conversationId", None)
            data["conversation_id"] = message_id

        if "snippet" not in data and data.get("body"):
            data["snippet"] = make_snippet(data["body"])

        folder = data.get("folder", SystemFolder.INBOX.value)
        if folder_name(folder) != SystemFolder.SCHEDULED.value:
            data.pop("scheduledSendTime", None)
            data["scheduled_send_time"] = None
        return data

    @field_validator("folder", mode="before")
    @classmethod
    def _plain_folder_name(cls, value: Any) -> Any:
        if isinstance(value, SystemFolder):
            return value.value
        return value

    @field_validator("timestamp", "scheduled_send_time")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_aware(value)

    @property
    def thread_key(self) -> str:
        return self.conversation_id or self.id


class Participant(CamelModel):
    """A distinct sender seen in a conversation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    email: str


class Conversation(CamelModel):
    """Derived view of every message sharing a conversation ID."""

    id: str
    subject: str
    emails: list[Message]
    participants: list[Participant]
    last_timestamp: datetime
    is_read: bool
    is_starred: bool
    folder: str
    has_attachments: bool


class UserFolder(CamelModel):
    """A folder created by the user."""

    id: str
    name: str
