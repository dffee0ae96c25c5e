"""In-process mailbox gateway.

Keeps every folder in a dict. Used for local development (seeded with demo
mail) and as the gateway of the test suite.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from webmail.exceptions import NotFoundError
from webmail.gateway.base import MessageFlag
from webmail.mailbox.store import apply_patch
from webmail.models import STORAGE_FOLDERS, Message, SystemFolder

logger = structlog.get_logger()

_FLAG_FIELDS = {"read": "is_read", "starred": "is_starred"}


class InMemoryMailboxGateway:
    """Mailbox gateway backed by plain Python containers."""

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._folders: dict[str, list[Message]] = {name: [] for name in STORAGE_FOLDERS}
        for message in messages:
            self._folders.setdefault(message.folder, []).append(message)
        logger.info("memory_gateway_initialized", messages=self.message_count)

    @property
    def message_count(self) -> int:
        return sum(len(messages) for messages in self._folders.values())

    async def list_folders(self) -> list[str]:
        return list(self._folders)

    async def fetch_folder(self, folder_id: str) -> list[Message]:
        return list(self._folder(folder_id))

    async def append_to_sent(self, message: Message) -> None:
        sent = self._folders[SystemFolder.SENT.value]
        stored = apply_patch(message, {"folder": SystemFolder.SENT.value})
        self._folders[SystemFolder.SENT.value] = [m for m in sent if m.id != stored.id]
        self._folders[SystemFolder.SENT.value].insert(0, stored)
        logger.info("gateway_appended_to_sent", message_id=message.id)

    async def set_flags(
        self, folder_id: str, ids: Sequence[str], flag: MessageFlag, enabled: bool
    ) -> int:
        field = _FLAG_FIELDS[flag]
        wanted = set(ids)
        changed = 0
        updated = []
        for message in self._folder(folder_id):
            if message.id in wanted:
                message = apply_patch(message, {field: enabled})
                changed += 1
            updated.append(message)
        self._folders[folder_id] = updated
        return changed

    async def move(self, folder_id: str, ids: Sequence[str], target: str) -> int:
        wanted = set(ids)
        source = self._folder(folder_id)
        moving = [apply_patch(m, {"folder": target}) for m in source if m.id in wanted]
        self._folders[folder_id] = [m for m in source if m.id not in wanted]
        self._folders.setdefault(target, [])[:0] = moving
        logger.info("gateway_moved", source=folder_id, target=target, count=len(moving))
        return len(moving)

    async def delete_permanently(self, folder_id: str, ids: Sequence[str]) -> int:
        wanted = set(ids)
        source = self._folder(folder_id)
        self._folders[folder_id] = [m for m in source if m.id not in wanted]
        return len(source) - len(self._folders[folder_id])

    def _folder(self, folder_id: str) -> list[Message]:
        try:
            return self._folders[folder_id]
        except KeyError:
            raise NotFoundError(f"Unknown folder: {folder_id}") from None
