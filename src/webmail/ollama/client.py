"""Thin async client for the Ollama ``/api/generate`` endpoint.

Used by the conversation summarizer. The request itself is a blocking urllib
call run through `asyncio.to_thread`.
"""

from __future__ import annotations

import asyncio
import json
import socket
import urllib.error
import urllib.request
from typing import Any, Optional

import structlog

from webmail.config import Settings, get_settings
from webmail.exceptions import OllamaConnectionError, OllamaInferenceError

logger = structlog.get_logger()


class OllamaClient:
    """Sends single-shot, non-streaming prompts to a local Ollama server."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Create a client.

        Args:
            settings: Host, model and timeout to use. Defaults to the
                process-wide settings.
        """
        self.settings = settings or get_settings()
        logger.info(
            "ollama_client_initialized",
            host=self.settings.ollama_host,
            model=self.settings.ollama_model,
        )

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
    ) -> dict[str, Any]:
        """Run one prompt to completion.

        Args:
            prompt: Full prompt text.
            model: Overrides the configured model for this call.

        Returns:
            The decoded Ollama payload; the generated text is under ``response``.

        Raises:
            OllamaConnectionError: If the server cannot be reached or times out.
            OllamaInferenceError: If the server answers with an error or garbage.
        """
        model = model or self.settings.ollama_model
        logger.info("generating_text", model=model, prompt_length=len(prompt))
        return await asyncio.to_thread(self._generate_sync, prompt, model)

    def _generate_sync(self, prompt: str, model: str) -> dict[str, Any]:
        payload = json.dumps({"model": model, "prompt": prompt, "stream": False}).encode("utf-8")
        req = urllib.request.Request(
            url=f"{self.settings.ollama_host.rstrip('/')}/api/generate",
            data=payload,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.settings.ollama_timeout) as resp:  # noqa: S310
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            logger.error("ollama_http_error", status=exc.code, model=model)
            raise OllamaInferenceError(f"Ollama returned HTTP {exc.code}") from exc
        except (urllib.error.URLError, socket.timeout, ConnectionError) as exc:
            logger.error("ollama_unreachable", host=self.settings.ollama_host, error=str(exc))
            raise OllamaConnectionError(f"Cannot reach Ollama at {self.settings.ollama_host}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise OllamaInferenceError("Ollama returned a non-JSON response") from exc

        if not isinstance(data, dict):
            raise OllamaInferenceError("Ollama returned an unexpected payload")
        if data.get("error"):
            raise OllamaInferenceError(str(data["error"]))
        return data
