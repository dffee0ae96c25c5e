"""Local LLM access through Ollama."""

from .client import OllamaClient

__all__ = ["OllamaClient"]
