"""Transient user-facing notifications ("toasts")."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from datetime import datetime
from typing import Literal

from pydantic import Field

from webmail.models import CamelModel
from webmail.utils import new_id, utcnow

NotificationLevel = Literal["info", "error"]


class Notification(CamelModel):
    id: str = Field(default_factory=lambda: new_id("toast"))
    message: str
    level: NotificationLevel = "info"
    action_label: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Notifier:
    """Bounded queue of notifications the UI has not picked up yet."""

    def __init__(self, max_pending: int = 50) -> None:
        self._pending: deque[Notification] = deque(maxlen=max_pending)
        self._listeners: list[Callable[[Notification], None]] = []

    def info(self, message: str, *, action_label: str | None = None) -> Notification:
        return self.push(Notification(message=message, action_label=action_label))

    def error(self, message: str) -> Notification:
        return self.push(Notification(message=message, level="error"))

    def push(self, notification: Notification) -> Notification:
        self._pending.append(notification)
        for listener in list(self._listeners):
            listener(notification)
        return notification

    def pending(self) -> list[Notification]:
        return list(self._pending)

    def drain(self) -> list[Notification]:
        """Return and forget everything queued so far."""
        drained = list(self._pending)
        self._pending.clear()
        return drained

    def subscribe(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
