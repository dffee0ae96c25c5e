"""Routing rules and auto-responses for incoming mail."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

import structlog

from webmail.mailbox.store import apply_patch
from webmail.models import AutoResponder, Message, Rule, SystemFolder
from webmail.utils import make_snippet, new_id

logger = structlog.get_logger()

RULE_FIELDS = ("sender", "recipient", "subject")
RULE_ACTIONS = ("move", "star", "mark_as_read")


def rule_problem(rule: Rule) -> str | None:
    """Describe why ``rule`` cannot be evaluated, or return None if it can."""
    condition, action = rule.condition, rule.action
    if condition.field not in RULE_FIELDS:
        return f"unsupported field {condition.field!r}"
    if condition.operator != "contains":
        return f"unsupported operator {condition.operator!r}"
    if not (condition.value or "").strip():
        return "empty value"
    if action.type not in RULE_ACTIONS:
        return f"unsupported action {action.type!r}"
    if action.type == "move" and not (action.folder or "").strip():
        return "move without folder"
    return None


def _field_text(message: Message, field: str) -> str:
    if field == "sender":
        return message.sender_email
    if field == "recipient":
        return message.recipient_email
    return message.subject


def rule_matches(rule: Rule, message: Message) -> bool:
    value = (rule.condition.value or "").strip().lower()
    return value in _field_text(message, rule.condition.field or "").lower()


def apply_rules(message: Message, rules: Sequence[Rule]) -> tuple[Message, Rule | None]:
    """Route ``message`` by the first matching rule.

    Rules are tried in order and evaluation stops at the first match, so a
    message is never acted on by two rules. Malformed rules are skipped.

    Returns:
        The possibly changed message and the rule that matched, if any.
    """
    for rule in rules:
        problem = rule_problem(rule)
        if problem is not None:
            logger.warning("rule_skipped", rule_id=rule.id, reason=problem)
            continue
        if not rule_matches(rule, message):
            continue

        if rule.action.type == "move":
            changes = {"folder": rule.action.folder.strip()}
        elif rule.action.type == "star":
            changes = {"is_starred": True}
        else:
            changes = {"is_read": True}

        logger.info(
            "rule_applied",
            rule_id=rule.id,
            message_id=message.id,
            action=rule.action.type,
            folder=rule.action.folder,
        )
        return apply_patch(message, changes), rule

    return message, None


def auto_responder_active(settings: AutoResponder, now: datetime) -> bool:
    """Whether replies go out at ``now``; the date window is inclusive."""
    if not settings.is_enabled:
        return False
    today = now.date()
    if settings.start_date is not None and today < settings.start_date:
        return False
    if settings.end_date is not None and today > settings.end_date:
        return False
    return True


def build_auto_reply(
    original: Message,
    settings: AutoResponder,
    *,
    sender_name: str,
    sender_email: str,
    now: datetime,
    snippet_length: int = 100,
) -> Message | None:
    """Synthesize the out-of-office reply to ``original``.

    Returns:
        The reply, filed in Sent on the original's thread, or None when the
        responder is off or the original came from the user themselves.
    """
    if not auto_responder_active(settings, now):
        return None
    if original.sender_email.lower() == sender_email.lower():
        return None

    return Message(
        id=new_id("email"),
        conversation_id=original.thread_key,
        sender_name=sender_name,
        sender_email=sender_email,
        recipient_email=original.sender_email,
        subject=settings.subject,
        body=settings.message,
        snippet=make_snippet(settings.message, snippet_length),
        timestamp=now,
        is_read=True,
        folder=SystemFolder.SENT,
    )
