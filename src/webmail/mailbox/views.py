"""Derive the displayed conversation list from folder selection or search.

Search is global: a non-empty query ignores the selected folder and also finds
mail sitting in Trash or Spam.

Besides free text, queries understand a few operators::

    from:alice  to:bob@example.com  subject:invoice
    is:starred  is:unread  is:read  has:attachment

All operators must match; whatever text remains is matched against subject,
snippet, body and sender name.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from webmail.models import Conversation, Message, SystemFolder, folder_name

_OPERATOR_RE = re.compile(r"\b(from|to|subject|is|has):([\w@.+-]+)", re.IGNORECASE)


@dataclass(frozen=True)
class SearchFilter:
    """One ``operator:value`` term of a query."""

    operator: str
    value: str


def parse_query(query: str) -> tuple[list[SearchFilter], str]:
    """Split a search query into operator filters and free text.

    Returns:
        (filters, free_text), both lower-cased.
    """
    lowered = query.lower()
    filters = [SearchFilter(m.group(1), m.group(2)) for m in _OPERATOR_RE.finditer(lowered)]
    text = _OPERATOR_RE.sub("", lowered)
    return filters, " ".join(text.split())


def _message_matches_text(message: Message, text: str) -> bool:
    return (
        text in message.subject.lower()
        or text in message.snippet.lower()
        or text in message.body.lower()
        or text in message.sender_name.lower()
    )


def _matches_filter(conversation: Conversation, f: SearchFilter) -> bool:
    if f.operator == "from":
        return any(
            f.value in p.name.lower() or f.value in p.email.lower()
            for p in conversation.participants
        )
    if f.operator == "to":
        return any(
            f.value in (e.recipient_email or "").lower()
            or f.value in (e.cc or "").lower()
            or f.value in (e.bcc or "").lower()
            for e in conversation.emails
        )
    if f.operator == "subject":
        return f.value in conversation.subject.lower()
    if f.operator == "is":
        if f.value == "starred":
            return conversation.is_starred
        if f.value == "unread":
            return not conversation.is_read
        if f.value == "read":
            return conversation.is_read
        return True
    if f.operator == "has":
        return conversation.has_attachments if f.value == "attachment" else True
    return True


def matches_query(conversation: Conversation, query: str) -> bool:
    """Whether ``conversation`` is a hit for the search ``query``."""
    filters, text = parse_query(query)
    if not all(_matches_filter(conversation, f) for f in filters):
        return False
    if not text:
        return True
    return any(_message_matches_text(e, text) for e in conversation.emails)


def display(
    conversations: Sequence[Conversation],
    folder: str | SystemFolder,
    search_query: str = "",
) -> list[Conversation]:
    """Select and order the conversations the mail list shows.

    Args:
        conversations: Output of the projector.
        folder: Selected folder, or the Starred view.
        search_query: Free-text query; when non-empty the folder is ignored.

    Returns:
        Matching conversations, newest activity first (stable on ties).
    """
    query = (search_query or "").strip()
    name = folder_name(folder)

    if query:
        selected = [c for c in conversations if matches_query(c, query)]
    elif name == SystemFolder.STARRED.value:
        selected = [
            c for c in conversations if c.is_starred and c.folder != SystemFolder.TRASH.value
        ]
    else:
        selected = [c for c in conversations if c.folder == name]

    return sorted(selected, key=lambda c: c.last_timestamp, reverse=True)
