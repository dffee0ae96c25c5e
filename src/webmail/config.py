"""Configuration management for the webmail backend.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the WEBMAIL_ prefix (e.g., WEBMAIL_OLLAMA_HOST).
    """

    model_config = SettingsConfigDict(
        env_prefix="WEBMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="127.0.0.1", description="Interface the API server binds to")
    port: int = Field(default=3001, description="Port the API server listens on")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:8080", "http://127.0.0.1:8080"],
        description="Browser origins allowed to call the API with credentials",
    )
    session_cookie_name: str = Field(
        default="webmail_session",
        description="Name of the cookie carrying the session token",
    )
    seed_demo_mail: bool = Field(
        default=True,
        description="Seed the in-memory mailbox gateway with demo mail for new users",
    )

    # Mailbox behaviour
    snippet_length: int = Field(
        default=100,
        ge=1,
        description="Number of plain-text characters kept in a message snippet",
    )
    autosave_delay_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Quiet period before a debounced draft autosave fires",
    )
    default_send_delay_seconds: int = Field(
        default=5,
        ge=0,
        description="Undo window applied to new users' send delay setting",
    )
    folder_delete_fallback: str = Field(
        default="Trash",
        description="System folder receiving the messages of a deleted user folder",
    )

    # Settings persistence
    settings_db_path: Path = Field(
        default=Path("webmail_settings.sqlite3"),
        description="Path to the SQLite database storing per-user mailbox settings",
    )

    # Ollama Configuration (conversation summaries)
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3.1:8b",
        description="Ollama model used to summarize conversations",
    )
    ollama_timeout: int = Field(
        default=60,
        description="Timeout for Ollama API requests in seconds",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
