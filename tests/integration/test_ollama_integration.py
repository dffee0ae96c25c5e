"""Integration tests with a real Ollama instance.

These tests require a running Ollama instance and are skipped unless
WEBMAIL_OLLAMA_INTEGRATION=1 is set.
"""

import os

import pytest

from webmail.mailbox.summary import OllamaSummarizer
from webmail.ollama import OllamaClient

requires_ollama = pytest.mark.skipif(
    os.getenv("WEBMAIL_OLLAMA_INTEGRATION") != "1",
    reason="set WEBMAIL_OLLAMA_INTEGRATION=1 to run against a local Ollama",
)


@pytest.mark.integration
@requires_ollama
class TestOllamaIntegration:
    """Integration tests for Ollama LLM."""

    @pytest.mark.asyncio
    async def test_ollama_connection(self) -> None:
        """Test connection to Ollama instance."""
        data = await OllamaClient().generate("Reply with the single word: ready")

        assert data.get("response")

    @pytest.mark.asyncio
    async def test_conversation_summary_with_ollama(self) -> None:
        """Test summarizing a short thread using real Ollama inference."""
        transcript = (
            "From: Alice <alice@example.com>\nSubject: Lunch\n\nLunch on Friday at noon?\n\n---\n\n"
            "From: Bob <bob@example.com>\nSubject: Re: Lunch\n\nFriday works, see you there."
        )

        summary = await OllamaSummarizer().summarize(transcript)

        assert summary
