"""Best-effort local persistence of mailbox settings."""

from .repository import SettingsRepository, StoredSettings

__all__ = ["SettingsRepository", "StoredSettings"]
