"""SQLite-backed store for per-user mailbox settings.

Settings are kept as one JSON document per user so the model can grow without
schema migrations. Loading is forgiving: a missing row, an unreadable database
or a document that no longer validates all yield the default settings.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import pydantic
import structlog

from webmail.models import AppSettings, default_app_settings

logger = structlog.get_logger()


_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class StoredSettings:
    """A settings row with its bookkeeping columns."""

    email_address: str
    settings: AppSettings
    updated_at: datetime


class SettingsRepository:
    """Repository for loading and saving :class:`AppSettings` per user."""

    def __init__(self, db_path: Path, *, default_send_delay_seconds: int = 5) -> None:
        """Create a repository.

        Args:
            db_path: Path to the SQLite database file.
            default_send_delay_seconds: Undo window given to users without
                stored settings.
        """

        self._db_path = db_path
        self._default_send_delay = default_send_delay_seconds

    def initialize(self) -> None:
        """Create or upgrade the settings schema."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                conn.commit()
                logger.info("settings_schema_created", version=_SCHEMA_VERSION)
                return

            if current_version != _SCHEMA_VERSION:
                raise RuntimeError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

    def defaults(self, email_address: str) -> AppSettings:
        return default_app_settings(email_address, self._default_send_delay)

    def load(self, email_address: str) -> AppSettings:
        """Load settings for ``email_address``, falling back to defaults."""

        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT settings_json FROM user_settings WHERE email_address = ?",
                    (email_address.lower(),),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("settings_load_failed", email=email_address, error=str(exc))
            return self.defaults(email_address)

        if row is None:
            return self.defaults(email_address)

        try:
            return AppSettings.model_validate_json(row["settings_json"])
        except pydantic.ValidationError as exc:
            logger.warning("settings_document_invalid", email=email_address, error=str(exc))
            return self.defaults(email_address)

    def save(self, email_address: str, settings: AppSettings) -> None:
        """Write ``settings`` for ``email_address``, replacing what was there."""

        now_iso = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO user_settings (email_address, settings_json, updated_at_iso)
                VALUES (:email_address, :settings_json, :updated_at_iso)
                ON CONFLICT(email_address) DO UPDATE SET
                    settings_json=excluded.settings_json,
                    updated_at_iso=excluded.updated_at_iso
                """,
                {
                    "email_address": email_address.lower(),
                    "settings_json": settings.model_dump_json(),
                    "updated_at_iso": now_iso,
                },
            )
            conn.commit()
        logger.info("settings_saved", email=email_address, rules=len(settings.rules))

    def list_all(self) -> list[StoredSettings]:
        """Every stored settings document, ordered by address."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT email_address, settings_json, updated_at_iso
                FROM user_settings
                ORDER BY email_address;
                """
            ).fetchall()

        return [
            StoredSettings(
                email_address=row["email_address"],
                settings=AppSettings.model_validate_json(row["settings_json"]),
                updated_at=datetime.fromisoformat(row["updated_at_iso"]),
            )
            for row in rows
        ]

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path)
        try:
            conn.row_factory = sqlite3.Row
            yield conn
        finally:
            conn.close()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS user_settings (
                email_address TEXT PRIMARY KEY,
                settings_json TEXT NOT NULL,
                updated_at_iso TEXT NOT NULL
            );
            """
        )
