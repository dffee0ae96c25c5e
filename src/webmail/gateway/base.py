"""Mailbox gateway interface."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal, Protocol

from webmail.models import Message

MessageFlag = Literal["read", "starred"]


class MailboxGateway(Protocol):
    """Remote mailbox as seen by a session.

    Implementations raise ``AuthenticationError`` when the credentials stop
    working, ``GatewayTimeoutError`` / ``GatewayConnectionError`` for network
    trouble and ``TransientGatewayError`` for anything else worth retrying.
    """

    async def list_folders(self) -> list[str]: ...

    async def fetch_folder(self, folder_id: str) -> list[Message]: ...

    async def append_to_sent(self, message: Message) -> None: ...

    async def set_flags(
        self, folder_id: str, ids: Sequence[str], flag: MessageFlag, enabled: bool
    ) -> int: ...

    async def move(self, folder_id: str, ids: Sequence[str], target: str) -> int: ...

    async def delete_permanently(self, folder_id: str, ids: Sequence[str]) -> int: ...
