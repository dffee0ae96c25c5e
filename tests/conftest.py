"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from webmail.models import Identity, Message, SystemFolder

BASE_TIME = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_settings(tmp_path):
    """Provide mock settings for testing."""
    from webmail.config import Settings

    return Settings(
        ollama_host="http://test:11434",
        ollama_model="test-model",
        log_level="DEBUG",
        debug=True,
        autosave_delay_seconds=0.05,
        settings_db_path=tmp_path / "settings.sqlite3",
        seed_demo_mail=False,
    )


@pytest.fixture
def identity() -> Identity:
    """The signed-in user of most tests."""
    return Identity(email_address="me@example.com", display_name="Me Myself")


@pytest.fixture
def make_message() -> Callable[..., Message]:
    """Build messages with sensible defaults; ``minutes`` offsets the timestamp."""

    def _make(message_id: str, *, minutes: int = 0, **fields) -> Message:
        data = {
            "id": message_id,
            "sender_name": "Alice Example",
            "sender_email": "alice@example.com",
            "recipient_email": "me@example.com",
            "subject": f"Subject {message_id}",
            "body": f"<p>Body of {message_id}</p>",
            "timestamp": BASE_TIME + timedelta(minutes=minutes),
            "folder": SystemFolder.INBOX,
        }
        data.update(fields)
        return Message(**data)

    return _make


@pytest.fixture
def mailbox(identity, mock_settings):
    """A mailbox with default settings and no messages."""
    from webmail.mailbox import Mailbox

    box = Mailbox(identity, config=mock_settings)
    yield box
    box.scheduler.cancel_all()


@pytest.fixture
def instant_mailbox(identity, mock_settings):
    """A mailbox whose sends skip the undo window."""
    from webmail.mailbox import Mailbox
    from webmail.models import SendDelay, default_app_settings

    settings = default_app_settings(identity.email_address).model_copy(
        update={"send_delay": SendDelay(is_enabled=False, duration=0)}
    )
    box = Mailbox(identity, config=mock_settings, app_settings=settings)
    yield box
    box.scheduler.cancel_all()
