"""Conversation summaries."""

from __future__ import annotations

from typing import Protocol

import structlog

from webmail.exceptions import OllamaInferenceError
from webmail.models import Conversation
from webmail.ollama import OllamaClient
from webmail.utils import strip_markup

logger = structlog.get_logger()

TOO_SHORT_TO_SUMMARIZE = "This conversation is too short to summarize."


class Summarizer(Protocol):
    """Turns a conversation transcript into a short prose summary."""

    async def summarize(self, transcript: str) -> str: ...


def build_transcript(conversation: Conversation) -> str:
    """Plain-text rendering of a thread, oldest message first."""
    parts = []
    for email in conversation.emails:
        parts.append(
            f"From: {email.sender_name} <{email.sender_email}>\n"
            f"Date: {email.timestamp.isoformat()}\n"
            f"Subject: {email.subject}\n\n"
            f"{strip_markup(email.body)}"
        )
    return "\n\n---\n\n".join(parts)


async def summarize_conversation(conversation: Conversation, summarizer: Summarizer) -> str:
    """Summarize ``conversation``; single-message threads never reach the model."""
    if len(conversation.emails) < 2:
        return TOO_SHORT_TO_SUMMARIZE
    return await summarizer.summarize(build_transcript(conversation))


class OllamaSummarizer:
    """Summarizer backed by a local Ollama model."""

    PROMPT = (
        "Summarize the following email conversation in a few sentences. "
        "Mention decisions, open questions and who is expected to act next.\n\n"
        "{transcript}\n"
    )

    def __init__(self, client: OllamaClient | None = None) -> None:
        self.client = client or OllamaClient()

    async def summarize(self, transcript: str) -> str:
        data = await self.client.generate(self.PROMPT.format(transcript=transcript))
        summary = (data.get("response") or "").strip()
        if not summary:
            raise OllamaInferenceError("Ollama returned an empty summary")
        logger.info("conversation_summarized", transcript_length=len(transcript))
        return summary
