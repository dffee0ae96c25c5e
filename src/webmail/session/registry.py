"""Mail sessions and the registry that hands them out by token."""

from __future__ import annotations

import asyncio
import secrets
from collections.abc import Callable

import structlog

from webmail.config import Settings, get_settings
from webmail.exceptions import TransientGatewayError
from webmail.gateway import InMemoryMailboxGateway, MailboxGateway, demo_messages
from webmail.mailbox import Mailbox, Summarizer
from webmail.models import Identity, Message
from webmail.persistence import SettingsRepository
from webmail.session.auth import SessionService
from webmail.utils import utcnow

logger = structlog.get_logger()

GatewayFactory = Callable[[Identity], MailboxGateway]


class MailSession:
    """One signed-in user: their mailbox and the gateway behind it."""

    def __init__(
        self,
        token: str,
        identity: Identity,
        gateway: MailboxGateway,
        *,
        settings: Settings | None = None,
        settings_repository: SettingsRepository | None = None,
        summarizer: Summarizer | None = None,
    ) -> None:
        self.token = token
        self.identity = identity
        self.gateway = gateway
        self._background: set[asyncio.Task[None]] = set()
        self.mailbox = Mailbox(
            identity,
            settings_repository=settings_repository,
            summarizer=summarizer,
            config=settings or get_settings(),
            on_sent=self._on_sent,
        )

    async def start(self) -> int:
        """Load every folder from the gateway into the mailbox.

        Returns:
            Number of messages loaded.

        Raises:
            TransientGatewayError: If the gateway could not be read; the
                mailbox is left empty.
        """
        messages: list[Message] = []
        try:
            for folder in await self.gateway.list_folders():
                messages.extend(await self.gateway.fetch_folder(folder))
        except TransientGatewayError as exc:
            logger.warning("session_load_failed", email=self.identity.email_address, error=str(exc))
            self.mailbox.notifier.error("Could not load your mailbox. Please try again.")
            raise

        self.mailbox.load(messages)
        logger.info("session_started", email=self.identity.email_address, messages=len(messages))
        return len(messages)

    async def close(self) -> None:
        """Stop every timer and wait for outstanding gateway writes."""
        self.mailbox.close()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        logger.info("session_closed", email=self.identity.email_address)

    def _on_sent(self, message: Message) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("sent_sync_skipped", message_id=message.id, reason="no running loop")
            return
        task = loop.create_task(self._append_to_sent(message))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _append_to_sent(self, message: Message) -> None:
        try:
            await self.gateway.append_to_sent(message)
        except TransientGatewayError as exc:
            logger.warning("sent_sync_failed", message_id=message.id, error=str(exc))
            self.mailbox.notifier.error("Your message was sent but could not be saved to the server.")


class SessionRegistry:
    """Creates, finds and ends mail sessions."""

    def __init__(
        self,
        session_service: SessionService,
        *,
        settings: Settings | None = None,
        settings_repository: SettingsRepository | None = None,
        gateway_factory: GatewayFactory | None = None,
        summarizer: Summarizer | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._session_service = session_service
        self._settings_repository = settings_repository
        self._gateway_factory = gateway_factory or self._default_gateway
        self._summarizer = summarizer
        self._sessions: dict[str, MailSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    async def login(self, email_address: str, password: str) -> MailSession:
        """Authenticate and open a session.

        Raises:
            AuthenticationError: If the credentials are rejected.
            TransientGatewayError: If the mailbox could not be loaded.
        """
        identity = await self._session_service.authenticate(email_address, password)
        session = MailSession(
            secrets.token_urlsafe(32),
            identity,
            self._gateway_factory(identity),
            settings=self.settings,
            settings_repository=self._settings_repository,
            summarizer=self._summarizer,
        )
        await session.start()
        self._sessions[session.token] = session
        return session

    def get(self, token: str | None) -> MailSession | None:
        if not token:
            return None
        return self._sessions.get(token)

    async def logout(self, token: str) -> bool:
        session = self._sessions.pop(token, None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        for token in list(self._sessions):
            await self.logout(token)

    def _default_gateway(self, identity: Identity) -> MailboxGateway:
        seed = demo_messages(identity, utcnow()) if self.settings.seed_demo_mail else []
        return InMemoryMailboxGateway(seed)
