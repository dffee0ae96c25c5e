"""Prefilled compose surfaces for new mail, replies, forwards and drafts."""

from __future__ import annotations

import html

from webmail.models import (
    ComposeAction,
    ComposePayload,
    ComposeState,
    Message,
    Signature,
)


def signature_block(signature: Signature) -> str:
    if not signature.is_enabled or not signature.body:
        return ""
    return f"<br><br>{signature.body}"


def _prefixed(prefix: str, subject: str) -> str:
    if subject.lower().startswith(prefix.lower()):
        return subject
    return f"{prefix} {subject}"


def _quoted_sender(message: Message) -> str:
    return f"{html.escape(message.sender_name)} &lt;{html.escape(message.sender_email)}&gt;"


def new_compose(signature: Signature, recipient: str = "") -> ComposeState:
    return ComposeState(
        action=ComposeAction.NEW,
        initial_data=ComposePayload(to=recipient, body=f"<p><br></p>{signature_block(signature)}"),
    )


def reply_compose(message: Message, signature: Signature) -> ComposeState:
    """Reply to ``message`` on the same thread, quoting it below the signature."""
    sent = message.timestamp.strftime("%a, %b %d, %Y at %H:%M")
    body = (
        f"<p><br></p>{signature_block(signature)}<br>"
        f"<blockquote>On {sent}, {_quoted_sender(message)} wrote:<br>{message.body}</blockquote>"
    )
    return ComposeState(
        action=ComposeAction.REPLY,
        conversation_id=message.thread_key,
        initial_data=ComposePayload(
            to=message.sender_email,
            subject=_prefixed("Re:", message.subject),
            body=body,
        ),
    )


def forward_compose(message: Message, signature: Signature) -> ComposeState:
    """Forward ``message`` with its attachments and a header block."""
    sent = message.timestamp.strftime("%a, %b %d, %Y at %H:%M")
    body = (
        f"<p><br></p>{signature_block(signature)}<br>"
        "<blockquote>--- Forwarded message ---<br>"
        f"<b>From:</b> {_quoted_sender(message)}<br>"
        f"<b>Date:</b> {sent}<br>"
        f"<b>Subject:</b> {html.escape(message.subject)}<br><br>"
        f"{message.body}</blockquote>"
    )
    return ComposeState(
        action=ComposeAction.FORWARD,
        initial_data=ComposePayload(
            subject=_prefixed("Fwd:", message.subject),
            body=body,
            attachments=list(message.attachments),
        ),
    )


def draft_compose(message: Message) -> ComposeState:
    """Reopen a stored draft (or a scheduled message pulled back) for editing."""
    return ComposeState(
        action=ComposeAction.DRAFT,
        draft_id=message.id,
        conversation_id=message.thread_key,
        initial_data=payload_from_message(message),
    )


def payload_from_message(message: Message) -> ComposePayload:
    return ComposePayload(
        to=message.recipient_email,
        cc=message.cc,
        bcc=message.bcc,
        subject=message.subject,
        body=message.body,
        attachments=list(message.attachments),
    )
