"""In-memory message store.

The store is the single source of truth for a session's mail. Every other view
(conversations, the displayed list) is derived from its snapshot. Mutations are
all-or-nothing: the new message tuple is computed and validated in full before
it replaces the old one, and listeners are told once per committed change.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Union

import pydantic
import structlog

from webmail.exceptions import DuplicateMessageError, ValidationError
from webmail.models import Message

logger = structlog.get_logger()

Predicate = Callable[[Message], bool]
Patch = Union[Mapping[str, Any], Callable[[Message], Mapping[str, Any]]]
Listener = Callable[[tuple[Message, ...]], None]


def apply_patch(message: Message, changes: Mapping[str, Any]) -> Message:
    """Return ``message`` with ``changes`` applied and re-validated.

    Raises:
        ValidationError: If the patched record is invalid.
    """
    data = message.model_dump()
    data.update(changes)
    try:
        return Message.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid update for message {message.id}: {exc}") from exc


class MessageStore:
    """Ordered set of messages with atomic mutation primitives."""

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: tuple[Message, ...] = ()
        self._staged: list[Message] | None = None
        self._listeners: list[Listener] = []
        self._notifying = False
        self._version = 0
        initial = tuple(messages)
        if initial:
            self._check_unique(initial)
            self._messages = initial

    @property
    def version(self) -> int:
        """Counter bumped on every committed change."""
        return self._version

    def get(self) -> tuple[Message, ...]:
        """Return the current snapshot, most recently inserted first."""
        if self._staged is not None:
            return tuple(self._staged)
        return self._messages

    def find(self, message_id: str) -> Message | None:
        for message in self.get():
            if message.id == message_id:
                return message
        return None

    def insert(self, message: Message) -> None:
        """Prepend ``message``.

        Raises:
            DuplicateMessageError: If a message with the same id exists.
        """
        self._commit([message, *self.get()])

    def update_where(self, predicate: Predicate, patch: Patch) -> int:
        """Patch every message matching ``predicate``.

        Args:
            predicate: Selects the messages to change.
            patch: Field changes, or a callable computing them per message.

        Returns:
            Number of messages changed. Matches the patch leaves as they
            were are not counted, and nothing is committed when none changed.
        """
        changed = 0
        updated: list[Message] = []
        for message in self.get():
            if predicate(message):
                changes = patch(message) if callable(patch) else patch
                patched = apply_patch(message, changes)
                if patched != message:
                    changed += 1
                    message = patched
            updated.append(message)
        if changed:
            self._commit(updated)
        return changed

    def remove_where(self, predicate: Predicate) -> int:
        """Drop every message matching ``predicate``; returns how many."""
        current = self.get()
        kept = [m for m in current if not predicate(m)]
        removed = len(current) - len(kept)
        if removed:
            self._commit(kept)
        return removed

    def replace_all(self, messages: Iterable[Message]) -> None:
        """Swap the whole content, e.g. after a fresh fetch."""
        self._commit(list(messages))

    @contextmanager
    def transaction(self) -> Iterator[MessageStore]:
        """Group several mutations into one commit.

        Inside the block primitives operate on a staged copy. Leaving the block
        normally commits and notifies once; an exception discards everything.
        Nested transactions join the outermost one.
        """
        if self._staged is not None:
            yield self
            return

        self._guard_reentrancy()
        self._staged = list(self._messages)
        try:
            yield self
        except BaseException:
            self._staged = None
            raise

        staged, self._staged = self._staged, None
        if staged != list(self._messages):
            self._swap(tuple(staged))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for committed changes.

        Returns:
            A callable removing the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, messages: list[Message]) -> None:
        self._guard_reentrancy()
        self._check_unique(messages)
        if self._staged is not None:
            self._staged = messages
            return
        self._swap(tuple(messages))

    def _swap(self, messages: tuple[Message, ...]) -> None:
        self._messages = messages
        self._version += 1
        self._notify()

    def _notify(self) -> None:
        self._notifying = True
        try:
            for listener in list(self._listeners):
                listener(self._messages)
        finally:
            self._notifying = False

    def _guard_reentrancy(self) -> None:
        if self._notifying:
            raise RuntimeError("Message store mutated from inside a change listener")

    @staticmethod
    def _check_unique(messages: Iterable[Message]) -> None:
        seen: set[str] = set()
        for message in messages:
            if message.id in seen:
                raise DuplicateMessageError(f"Duplicate message id: {message.id}")
            seen.add(message.id)
