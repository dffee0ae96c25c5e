"""Per-user mailbox settings: signature, auto-responder, rules, send delay."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import Field

from webmail.models.message import CamelModel

RuleField = Literal["sender", "recipient", "subject"]
RuleActionType = Literal["move", "star", "mark_as_read"]


class Signature(CamelModel):
    """Signature appended to new messages, replies and forwards."""

    is_enabled: bool = False
    body: str = ""


class AutoResponder(CamelModel):
    """Out-of-office reply settings.

    The active window is inclusive on both ends; a missing date leaves that
    side open.
    """

    is_enabled: bool = False
    subject: str = "Out of Office"
    message: str = "I am currently unavailable."
    start_date: date | None = None
    end_date: date | None = None


class SendDelay(CamelModel):
    """Undo window applied to every send."""

    is_enabled: bool = True
    duration: int = Field(default=5, ge=0, description="Undo window in seconds")


class RuleCondition(CamelModel):
    # Loose on purpose: persisted rules may be incomplete and are skipped at
    # evaluation time instead of failing the whole settings document.
    field: str | None = None
    operator: str = "contains"
    value: str | None = None


class RuleAction(CamelModel):
    type: str = "move"
    folder: str | None = None


class Rule(CamelModel):
    """A condition/action pair applied to incoming mail."""

    id: str
    condition: RuleCondition
    action: RuleAction


class AppSettings(CamelModel):
    """Everything a user configures about their mailbox."""

    signature: Signature = Field(default_factory=Signature)
    auto_responder: AutoResponder = Field(default_factory=AutoResponder)
    rules: list[Rule] = Field(default_factory=list)
    send_delay: SendDelay = Field(default_factory=SendDelay)


def default_app_settings(email_address: str, send_delay_seconds: int = 5) -> AppSettings:
    """Build the settings a user starts with.

    Also the fallback whenever stored settings cannot be loaded.
    """
    local_part = email_address.split("@")[0] if email_address else ""
    return AppSettings(
        signature=Signature(is_enabled=True, body=f"Cheers,<br>{local_part}"),
        auto_responder=AutoResponder(),
        rules=[],
        send_delay=SendDelay(is_enabled=send_delay_seconds > 0, duration=send_delay_seconds),
    )
