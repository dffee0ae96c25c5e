"""Data models for the webmail backend.

This module contains Pydantic models for data validation and serialization.
"""

from webmail.models.compose import ComposeAction, ComposePayload, ComposeState
from webmail.models.identity import Identity
from webmail.models.message import (
    STORAGE_FOLDERS,
    Attachment,
    CamelModel,
    Conversation,
    Message,
    Participant,
    SystemFolder,
    UserFolder,
    folder_name,
)
from webmail.models.settings import (
    AppSettings,
    AutoResponder,
    Rule,
    RuleAction,
    RuleCondition,
    SendDelay,
    Signature,
    default_app_settings,
)

__all__ = [
    "STORAGE_FOLDERS",
    "AppSettings",
    "Attachment",
    "AutoResponder",
    "CamelModel",
    "ComposeAction",
    "ComposePayload",
    "ComposeState",
    "Conversation",
    "Identity",
    "Message",
    "Participant",
    "Rule",
    "RuleAction",
    "RuleCondition",
    "SendDelay",
    "Signature",
    "SystemFolder",
    "UserFolder",
    "default_app_settings",
    "folder_name",
]
