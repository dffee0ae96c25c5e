"""Group messages into conversations."""

from __future__ import annotations

from collections.abc import Sequence

from webmail.models import Conversation, Message, Participant

NO_SUBJECT = "(no subject)"


def _build_conversation(conversation_id: str, messages: list[Message]) -> Conversation:
    # sorted() is stable, so equal timestamps keep store order.
    emails = sorted(messages, key=lambda m: m.timestamp)
    latest = emails[-1]

    participants: list[Participant] = []
    seen: set[tuple[str, str]] = set()
    for email in emails:
        pair = (email.sender_name, email.sender_email)
        if pair not in seen:
            seen.add(pair)
            participants.append(Participant(name=email.sender_name, email=email.sender_email))

    return Conversation(
        id=conversation_id,
        subject=latest.subject or NO_SUBJECT,
        emails=emails,
        participants=participants,
        last_timestamp=latest.timestamp,
        is_read=all(e.is_read for e in emails),
        is_starred=any(e.is_starred for e in emails),
        folder=latest.folder,
        has_attachments=any(e.attachments for e in emails),
    )


def project(messages: Sequence[Message]) -> list[Conversation]:
    """Group ``messages`` by conversation and derive per-thread state.

    Pure and deterministic. The result is ordered by last activity, newest
    first; ties keep first-seen order.
    """
    grouped: dict[str, list[Message]] = {}
    for message in messages:
        grouped.setdefault(message.thread_key, []).append(message)

    conversations = [_build_conversation(cid, group) for cid, group in grouped.items()]
    conversations.sort(key=lambda c: c.last_timestamp, reverse=True)
    return conversations


class ConversationProjector:
    """Caches :func:`project` by the identity of its input snapshot."""

    def __init__(self) -> None:
        self._last_input: Sequence[Message] | None = None
        self._last_output: list[Conversation] = []

    def __call__(self, messages: Sequence[Message]) -> list[Conversation]:
        if messages is not self._last_input:
            self._last_output = project(messages)
            self._last_input = messages
        return self._last_output
