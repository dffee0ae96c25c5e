"""Registry of delayed, cancelable actions.

Every timer of a session lives here, keyed by the message it belongs to (or by
compose key for draft autosave): the undo window of a send, scheduled sends,
and debounced autosaves. Timers are ``call_later`` handles on the running
asyncio loop, so an expiry runs on the same thread as every other mutation and
simultaneous expiries fire one after the other in deadline order.

A unit is ARMED until it either fires (COMMITTED) or is canceled (CANCELED).
Cancelling twice, or cancelling something that already fired, is a no-op.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

import structlog

from webmail.utils import ensure_aware, utcnow

logger = structlog.get_logger()


class DeferredKind(str, Enum):
    UNDO_SEND = "undo_send"
    SCHEDULED_SEND = "scheduled_send"
    AUTOSAVE = "autosave"


class DeferredState(str, Enum):
    ARMED = "armed"
    COMMITTED = "committed"
    CANCELED = "canceled"


@dataclass
class DeferredAction:
    """One armed timer and what it does on expiry."""

    key: str
    kind: DeferredKind
    due_at: datetime
    callback: Callable[[], None] = field(repr=False)
    state: DeferredState = DeferredState.ARMED
    handle: asyncio.TimerHandle | None = field(default=None, repr=False)


class DeferredActionScheduler:
    """Arm, cancel and flush deferred actions by key."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        """Create a scheduler.

        Args:
            clock: Source of the current instant; used to turn absolute due
                times into delays.
        """
        self._clock = clock
        self._actions: dict[str, DeferredAction] = {}

    def arm(
        self,
        key: str,
        callback: Callable[[], None],
        *,
        delay: float,
        kind: DeferredKind,
    ) -> DeferredAction:
        """Run ``callback`` after ``delay`` seconds unless canceled first.

        Re-arming a key that is still armed replaces the earlier timer. A
        non-positive delay runs the callback before returning.

        Raises:
            RuntimeError: If a timer is needed and no event loop is running;
                nothing is armed or canceled then.
        """
        loop = self.require_loop(delay)
        self.cancel(key)
        action = DeferredAction(
            key=key,
            kind=kind,
            due_at=self._clock() + timedelta(seconds=max(delay, 0.0)),
            callback=callback,
        )
        self._actions[key] = action

        if delay <= 0:
            logger.info("deferred_action_due_now", key=key, kind=kind.value)
            self._fire(key)
            return action

        assert loop is not None
        action.handle = loop.call_later(delay, self._on_timer, key)
        logger.info("deferred_action_armed", key=key, kind=kind.value, delay=delay)
        return action

    @staticmethod
    def require_loop(delay: float) -> asyncio.AbstractEventLoop | None:
        """Return the loop a timer of ``delay`` seconds would run on.

        A non-positive delay fires synchronously and needs no loop.

        Raises:
            RuntimeError: If ``delay`` is positive and no event loop is running.
        """
        if delay <= 0:
            return None
        return asyncio.get_running_loop()

    def arm_at(
        self,
        key: str,
        callback: Callable[[], None],
        *,
        when: datetime,
        kind: DeferredKind,
    ) -> DeferredAction:
        """Run ``callback`` at ``when``; an instant in the past fires immediately."""
        delay = (ensure_aware(when) - self._clock()).total_seconds()
        return self.arm(key, callback, delay=delay, kind=kind)

    def cancel(self, key: str) -> bool:
        """Tear down the timer for ``key``.

        Returns:
            True if something was armed, False if there was nothing to cancel.
        """
        action = self._actions.pop(key, None)
        if action is None or action.state is not DeferredState.ARMED:
            return False
        if action.handle is not None:
            action.handle.cancel()
        action.state = DeferredState.CANCELED
        logger.info("deferred_action_canceled", key=key, kind=action.kind.value)
        return True

    def cancel_many(self, keys: list[str] | set[str]) -> int:
        return sum(1 for key in keys if self.cancel(key))

    def cancel_all(self) -> int:
        """Cancel every armed action, e.g. when the session ends."""
        return self.cancel_many(list(self._actions))

    def flush(self, key: str) -> bool:
        """Run the action for ``key`` now instead of waiting.

        Returns:
            True if an armed action ran.
        """
        action = self._actions.get(key)
        if action is None or action.state is not DeferredState.ARMED:
            return False
        if action.handle is not None:
            action.handle.cancel()
        self._fire(key)
        return True

    def is_armed(self, key: str) -> bool:
        action = self._actions.get(key)
        return action is not None and action.state is DeferredState.ARMED

    def get(self, key: str) -> DeferredAction | None:
        return self._actions.get(key)

    def armed(self, kind: DeferredKind | None = None) -> list[DeferredAction]:
        """Armed actions, optionally of one kind, soonest first."""
        actions = [a for a in self._actions.values() if kind is None or a.kind is kind]
        return sorted(actions, key=lambda a: a.due_at)

    def _fire(self, key: str) -> None:
        action = self._actions.pop(key, None)
        if action is None or action.state is not DeferredState.ARMED:
            return
        action.state = DeferredState.COMMITTED
        action.handle = None
        logger.info("deferred_action_fired", key=key, kind=action.kind.value)
        action.callback()

    def _on_timer(self, key: str) -> None:
        # Nobody awaits a loop callback, so failures end here and get logged.
        try:
            self._fire(key)
        except Exception as exc:  # noqa: BLE001
            logger.exception("deferred_action_failed", key=key, error=str(exc))
