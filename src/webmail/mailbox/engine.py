"""Mailbox: the mutation engine of one authenticated session.

Every user action lands here. An operation validates its input, cancels the
timers of the messages it is about to move, applies its change to the
:class:`MessageStore` in one commit and leaves a notification for the UI.

Operations run one at a time: a call made while another is still running
(for instance from a store listener) raises ``RuntimeError``. Targets that
vanished in the meantime (a conversation deleted by an earlier request, a
draft already sent) make the call a silent no-op.
"""

from __future__ import annotations

import functools
import sqlite3
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

import structlog

from webmail.config import Settings, get_settings
from webmail.exceptions import (
    NotFoundError,
    SettingsStorageError,
    SummarizerError,
    ValidationError,
    WebmailError,
)
from webmail.mailbox.compose import (
    draft_compose,
    forward_compose,
    new_compose,
    reply_compose,
)
from webmail.mailbox.notifications import Notifier
from webmail.mailbox.projector import ConversationProjector
from webmail.mailbox.rules import apply_rules, build_auto_reply, rule_problem
from webmail.mailbox.scheduler import DeferredActionScheduler, DeferredKind
from webmail.mailbox.store import MessageStore
from webmail.mailbox.summary import OllamaSummarizer, Summarizer, summarize_conversation
from webmail.mailbox.views import display
from webmail.models import (
    STORAGE_FOLDERS,
    AppSettings,
    AutoResponder,
    ComposeAction,
    ComposePayload,
    ComposeState,
    Conversation,
    Identity,
    Message,
    Rule,
    RuleAction,
    RuleCondition,
    SendDelay,
    Signature,
    SystemFolder,
    UserFolder,
    default_app_settings,
    folder_name,
)
from webmail.ollama import OllamaClient
from webmail.persistence import SettingsRepository
from webmail.utils import ensure_aware, make_snippet, new_id, utcnow

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

_RESERVED_FOLDER_NAMES = {f.value.lower() for f in SystemFolder}


@dataclass(frozen=True)
class PendingSend:
    """A send waiting out its undo window."""

    email: Message
    payload: ComposePayload
    draft: Message | None
    conversation_id: str | None
    due_at: datetime


def mutation(method: F) -> F:
    """Run a Mailbox operation on the serialized mutation path."""

    @functools.wraps(method)
    def wrapper(self: Mailbox, *args: Any, **kwargs: Any) -> Any:
        if self._busy:
            raise RuntimeError(f"Mailbox.{method.__name__} called while another operation runs")
        self._busy = True
        try:
            return method(self, *args, **kwargs)
        except NotFoundError as exc:
            logger.debug("mailbox_target_missing", operation=method.__name__, error=str(exc))
            return None
        except ValidationError as exc:
            logger.info("mailbox_operation_rejected", operation=method.__name__, error=str(exc))
            self.notifier.error(str(exc))
            raise
        finally:
            self._busy = False

    return wrapper  # type: ignore[return-value]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class Mailbox:
    """State and operations of one user's mailbox."""

    def __init__(
        self,
        identity: Identity,
        *,
        app_settings: AppSettings | None = None,
        settings_repository: SettingsRepository | None = None,
        user_folders: Iterable[UserFolder] = (),
        summarizer: Summarizer | None = None,
        config: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
        on_sent: Callable[[Message], None] | None = None,
    ) -> None:
        """Create a mailbox.

        Args:
            identity: The signed-in user; sender of everything sent here.
            app_settings: Initial settings. Loaded from ``settings_repository``
                (or defaulted) when omitted.
            settings_repository: Where settings changes are written back.
            user_folders: Folders the user created earlier.
            summarizer: Conversation summarizer; Ollama when omitted.
            config: Application settings.
            clock: Source of the current instant.
            on_sent: Called with every message that reaches Sent.
        """
        self.identity = identity
        self._config = config or get_settings()
        self._clock = clock
        self._repository = settings_repository
        self._summarizer = summarizer
        self._on_sent = on_sent

        if app_settings is None:
            if settings_repository is not None:
                app_settings = settings_repository.load(identity.email_address)
            else:
                app_settings = default_app_settings(
                    identity.email_address, self._config.default_send_delay_seconds
                )
        self.app_settings = app_settings

        self.store = MessageStore()
        self.scheduler = DeferredActionScheduler(clock)
        self.notifier = Notifier()
        self.user_folders: list[UserFolder] = list(user_folders)

        self.current_folder: str = SystemFolder.INBOX.value
        self.search_query = ""
        self.selected_conversation_id: str | None = None
        self.selected_conversation_ids: set[str] = set()
        self.compose_state: ComposeState | None = None

        self._projector = ConversationProjector()
        self._pending_send: PendingSend | None = None
        self._autosave_drafts: dict[str, str] = {}
        self._busy = False

    # Derived views

    @property
    def conversations(self) -> list[Conversation]:
        return self._projector(self.store.get())

    @property
    def displayed_conversations(self) -> list[Conversation]:
        """The mail list for the current folder or search."""
        return display(self.conversations, self.current_folder, self.search_query)

    @property
    def pending_send(self) -> PendingSend | None:
        return self._pending_send

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        for conversation in self.conversations:
            if conversation.id == conversation_id:
                return conversation
        return None

    def require_conversation(self, conversation_id: str) -> Conversation:
        """Look up a conversation.

        Raises:
            NotFoundError: If no message belongs to ``conversation_id``.
        """
        conversation = self.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation not found: {conversation_id}")
        return conversation

    def require_message(self, message_id: str) -> Message:
        message = self.store.find(message_id)
        if message is None:
            raise NotFoundError(f"Message not found: {message_id}")
        return message

    def unread_counts(self) -> dict[str, int]:
        """Unread conversations per folder, for the sidebar."""
        counts: dict[str, int] = {}
        for conversation in self.conversations:
            if not conversation.is_read:
                counts[conversation.folder] = counts.get(conversation.folder, 0) + 1
        return counts

    def subscribe(self, listener: Callable[[tuple[Message, ...]], None]) -> Callable[[], None]:
        return self.store.subscribe(listener)

    # Lifecycle

    @mutation
    def load(self, messages: Iterable[Message]) -> int:
        """Replace the mailbox content and re-arm scheduled sends.

        Scheduled messages whose time already passed are sent right away.

        Returns:
            Number of scheduled sends armed or committed.
        """
        self.scheduler.cancel_many(
            [a.key for a in self.scheduler.armed(DeferredKind.SCHEDULED_SEND)]
        )
        self.store.replace_all(messages)

        armed = 0
        for message in self.store.get():
            if message.folder != SystemFolder.SCHEDULED.value:
                continue
            if message.scheduled_send_time is None:
                logger.warning("scheduled_message_without_time", message_id=message.id)
                continue
            self._arm_scheduled(message)
            armed += 1

        logger.info("mailbox_loaded", messages=len(self.store.get()), scheduled=armed)
        return armed

    def close(self) -> None:
        """End the session: a send in its undo window goes out, every other timer stops."""
        if self._pending_send is not None:
            self.scheduler.flush(self._pending_send.email.id)
        canceled = self.scheduler.cancel_all()
        self._autosave_drafts.clear()
        logger.info("mailbox_closed", email=self.identity.email_address, canceled=canceled)

    # Conversation operations

    @mutation
    def toggle_star(self, conversation_id: str, email_id: str | None = None) -> bool:
        """Flip the star of one message, or of the whole conversation.

        Without ``email_id`` every message gets the inverse of the
        conversation's aggregate star, so toggling twice restores it.

        Returns:
            The new starred value.
        """
        conversation = self.require_conversation(conversation_id)
        if email_id is not None:
            target = next((e for e in conversation.emails if e.id == email_id), None)
            if target is None:
                raise NotFoundError(f"Message {email_id} is not part of {conversation_id}")
            starred = not target.is_starred
            ids = {email_id}
        else:
            starred = not conversation.is_starred
            ids = {e.id for e in conversation.emails}

        self.store.update_where(lambda m: m.id in ids, {"is_starred": starred})
        logger.info("conversation_starred", conversation_id=conversation_id, starred=starred)
        self.notifier.info("Conversation starred." if starred else "Star removed.")
        return starred

    @mutation
    def mark_read(self, conversation_id: str) -> None:
        self._set_read([self.require_conversation(conversation_id)], True)
        self.notifier.info("Conversation marked as read.")

    @mutation
    def mark_unread(self, conversation_id: str) -> None:
        self._set_read([self.require_conversation(conversation_id)], False)
        self.notifier.info("Conversation marked as unread.")

    @mutation
    def delete_conversation(self, conversation_id: str) -> None:
        """Move a conversation to Trash, or delete it for good if it is there already."""
        conversation = self.require_conversation(conversation_id)
        with self.store.transaction():
            _, purged = self._delete([conversation])
        if purged:
            self.notifier.info("Conversation permanently deleted.")
        else:
            self.notifier.info("Conversation moved to Trash.")

    @mutation
    def move_conversations(self, conversation_ids: Iterable[str], target_folder: str) -> int:
        """Move whole conversations into ``target_folder``.

        Raises:
            ValidationError: If ``target_folder`` is not a storage folder or
                an existing user folder.
        """
        target = self._resolve_target_folder(target_folder)
        conversations = self._resolve_conversations(conversation_ids)
        moved = self._move(conversations, target)
        self.notifier.info(f'{_plural(moved, "conversation")} moved to "{target}".')
        return moved

    @mutation
    def mark_as_spam(self, conversation_ids: Iterable[str]) -> int:
        moved = self._move(self._resolve_conversations(conversation_ids), SystemFolder.SPAM.value)
        self.notifier.info(f"{_plural(moved, 'conversation')} marked as spam.")
        return moved

    @mutation
    def mark_as_not_spam(self, conversation_ids: Iterable[str]) -> int:
        moved = self._move(self._resolve_conversations(conversation_ids), SystemFolder.INBOX.value)
        self.notifier.info(f"{_plural(moved, 'conversation')} moved to Inbox.")
        return moved

    # Selection

    @mutation
    def toggle_selection(self, conversation_id: str) -> bool:
        """Add or remove a conversation from the bulk selection; returns membership."""
        if conversation_id in self.selected_conversation_ids:
            self.selected_conversation_ids.discard(conversation_id)
            return False
        self.selected_conversation_ids.add(conversation_id)
        return True

    @mutation
    def select_all(self, conversation_ids: Iterable[str] | None = None) -> None:
        """Select ``conversation_ids``, or everything currently displayed."""
        if conversation_ids is None:
            conversation_ids = [c.id for c in self.displayed_conversations]
        self.selected_conversation_ids = set(conversation_ids)

    @mutation
    def deselect_all(self) -> None:
        self.selected_conversation_ids.clear()

    @mutation
    def bulk_mark_as_spam(self) -> int:
        conversations = self._selected_conversations()
        with self.store.transaction():
            moved = self._move(conversations, SystemFolder.SPAM.value)
        self.selected_conversation_ids.clear()
        self.notifier.info(f"{_plural(moved, 'conversation')} marked as spam.")
        return moved

    @mutation
    def bulk_delete(self) -> int:
        conversations = self._selected_conversations()
        with self.store.transaction():
            trashed, purged = self._delete(conversations)
        self.selected_conversation_ids.clear()
        self.notifier.info(f"{_plural(trashed + purged, 'conversation')} deleted.")
        return trashed + purged

    @mutation
    def bulk_mark_as_read(self) -> int:
        conversations = self._selected_conversations()
        with self.store.transaction():
            self._set_read(conversations, True)
        self.selected_conversation_ids.clear()
        self.notifier.info(f"{_plural(len(conversations), 'conversation')} marked as read.")
        return len(conversations)

    @mutation
    def bulk_mark_as_unread(self) -> int:
        conversations = self._selected_conversations()
        with self.store.transaction():
            self._set_read(conversations, False)
        self.selected_conversation_ids.clear()
        self.notifier.info(f"{_plural(len(conversations), 'conversation')} marked as unread.")
        return len(conversations)

    # Compose and send

    @mutation
    def save_draft(
        self,
        payload: ComposePayload,
        draft_id: str | None = None,
        conversation_id: str | None = None,
    ) -> str:
        """Create or overwrite a draft; returns its id."""
        resolved = self._save_draft(payload, draft_id, conversation_id)
        self.notifier.info("Draft saved.")
        return resolved

    @mutation
    def autosave_draft(
        self,
        compose_key: str,
        payload: ComposePayload,
        draft_id: str | None = None,
        conversation_id: str | None = None,
    ) -> None:
        """Save ``payload`` once the compose surface has been quiet for a while.

        Each call restarts the quiet period, so a burst of edits results in a
        single save. The first save mints a draft id that later saves of the
        same ``compose_key`` keep writing to.
        """
        if draft_id:
            self._autosave_drafts[compose_key] = draft_id

        def save() -> None:
            resolved = self._save_draft(
                payload, self._autosave_drafts.get(compose_key), conversation_id
            )
            self._autosave_drafts[compose_key] = resolved

        self.scheduler.arm(
            self._autosave_key(compose_key),
            save,
            delay=self._config.autosave_delay_seconds,
            kind=DeferredKind.AUTOSAVE,
        )

    def autosaved_draft_id(self, compose_key: str) -> str | None:
        return self._autosave_drafts.get(compose_key)

    @mutation
    def cancel_autosave(self, compose_key: str) -> bool:
        return self.scheduler.cancel(self._autosave_key(compose_key))

    @mutation
    def close_compose(self, compose_key: str | None = None) -> None:
        self._close_compose(compose_key)
        self.compose_state = None

    @mutation
    def send_email(
        self,
        payload: ComposePayload,
        draft_id: str | None = None,
        conversation_id: str | None = None,
        compose_key: str | None = None,
    ) -> str:
        """Send a message, holding it back for the undo window first.

        The draft it came from is removed immediately. With the send delay
        disabled the message goes to Sent before this returns. Only one send
        waits at a time: sending again commits the earlier one first.

        Returns:
            Id of the outgoing message.

        Raises:
            ValidationError: If there is no recipient.
            RuntimeError: If the undo window needs a timer and no event loop
                runs; the draft and any earlier pending send are left alone.
        """
        self._require_recipient(payload)
        delay = self._send_delay_seconds()
        self.scheduler.require_loop(delay)
        self._close_compose(compose_key)
        if self._pending_send is not None:
            self.scheduler.flush(self._pending_send.email.id)

        draft = self._find_draft(draft_id)
        thread_id = conversation_id or (draft.thread_key if draft else None)
        message = self._outgoing(payload, thread_id or new_id("conv"), SystemFolder.SENT)

        if draft is not None:
            self._discard_draft(draft.id)

        if delay <= 0:
            self._deliver(message)
            return message.id

        action = self.scheduler.arm(
            message.id, self._commit_pending_send, delay=delay, kind=DeferredKind.UNDO_SEND
        )
        self._pending_send = PendingSend(
            email=message,
            payload=payload,
            draft=draft,
            conversation_id=thread_id,
            due_at=action.due_at,
        )
        self.notifier.info("Sending...", action_label="Undo")
        return message.id

    @mutation
    def undo_send(self) -> ComposeState | None:
        """Call back the send in its undo window.

        The draft it was sent from comes back and compose reopens with what
        was typed. Once the window closed this does nothing.
        """
        pending = self._pending_send
        if pending is None:
            logger.debug("undo_send_nothing_pending")
            return None

        self.scheduler.cancel(pending.email.id)
        self._pending_send = None
        if pending.draft is not None and self.store.find(pending.draft.id) is None:
            self.store.insert(pending.draft)

        self.compose_state = ComposeState(
            action=ComposeAction.DRAFT if pending.draft else ComposeAction.NEW,
            draft_id=pending.draft.id if pending.draft else None,
            conversation_id=pending.conversation_id,
            initial_data=pending.payload,
        )
        logger.info("send_undone", message_id=pending.email.id)
        self.notifier.info("Sending undone.")
        return self.compose_state

    @mutation
    def flush_pending_send(self) -> bool:
        """Send the message in its undo window now."""
        if self._pending_send is None:
            return False
        return self.scheduler.flush(self._pending_send.email.id)

    @mutation
    def schedule_email(
        self,
        payload: ComposePayload,
        send_at: datetime,
        draft_id: str | None = None,
        conversation_id: str | None = None,
        compose_key: str | None = None,
    ) -> str:
        """File a message under Scheduled and send it at ``send_at``.

        A time in the past sends it before this returns.
        """
        self._require_recipient(payload)
        send_at = ensure_aware(send_at)
        self.scheduler.require_loop((send_at - self._clock()).total_seconds())
        self._close_compose(compose_key)

        draft = self._find_draft(draft_id)
        thread_id = conversation_id or (draft.thread_key if draft else None) or new_id("conv")
        message = self._outgoing(
            payload, thread_id, SystemFolder.SCHEDULED, scheduled_send_time=send_at
        )

        with self.store.transaction():
            if draft is not None:
                self._discard_draft(draft.id)
            self.store.insert(message)

        self.notifier.info(f"Message scheduled for {send_at:%b %d, %H:%M}.")
        self._arm_scheduled(message)
        return message.id

    @mutation
    def edit_scheduled(self, message_id: str) -> ComposeState:
        """Pull a scheduled message back into Drafts and reopen it."""
        message = self.require_message(message_id)
        if message.folder != SystemFolder.SCHEDULED.value:
            raise ValidationError("Only scheduled messages can be edited.")

        self.scheduler.cancel(message_id)
        self.store.update_where(
            lambda m: m.id == message_id, {"folder": SystemFolder.DRAFTS.value}
        )
        self.compose_state = draft_compose(self.require_message(message_id))
        self.notifier.info("Scheduled send canceled. The message was moved to Drafts.")
        return self.compose_state

    @mutation
    def delete_email(self, message_id: str, discard: bool = False) -> None:
        """Delete one message's conversation, or discard a single draft."""
        message = self.require_message(message_id)
        if not discard:
            conversation = self.require_conversation(message.thread_key)
            with self.store.transaction():
                _, purged = self._delete([conversation])
            self.notifier.info(
                "Conversation permanently deleted." if purged else "Conversation moved to Trash."
            )
            return

        self._discard_draft(message_id)
        logger.info("draft_discarded", message_id=message_id)
        self.notifier.info("Draft discarded.")

    @mutation
    def open_compose(
        self, action: ComposeAction = ComposeAction.NEW, email_id: str | None = None
    ) -> ComposeState:
        """Open a compose surface prefilled for ``action``."""
        signature = self.app_settings.signature
        if action is ComposeAction.NEW:
            state = new_compose(signature)
        else:
            if email_id is None:
                raise ValidationError(f"Composing a {action.value} needs a message.")
            message = self.require_message(email_id)
            if action is ComposeAction.REPLY:
                state = reply_compose(message, signature)
            elif action is ComposeAction.FORWARD:
                state = forward_compose(message, signature)
            else:
                state = draft_compose(message)
        self.compose_state = state
        return state

    # Incoming mail

    @mutation
    def receive(self, message: Message) -> Message:
        """Take in a new message: route it by rules and answer it if away.

        Returns:
            The message as stored, after rule routing.
        """
        if self.store.find(message.id) is not None:
            raise ValidationError(f"Message {message.id} was already received.")

        routed, rule = apply_rules(message, self.app_settings.rules)

        reply = None
        try:
            reply = build_auto_reply(
                routed,
                self.app_settings.auto_responder,
                sender_name=self.identity.display_name,
                sender_email=self.identity.email_address,
                now=self._clock(),
                snippet_length=self._config.snippet_length,
            )
        except (WebmailError, ValueError) as exc:
            logger.exception("auto_reply_failed", message_id=message.id, error=str(exc))

        with self.store.transaction():
            if reply is not None:
                self.store.insert(reply)
            self.store.insert(routed)

        logger.info(
            "message_received",
            message_id=routed.id,
            folder=routed.folder,
            rule_id=rule.id if rule else None,
            auto_replied=reply is not None,
        )
        self.notifier.info(f"New message from {routed.sender_name or routed.sender_email}.")
        if reply is not None and self._on_sent is not None:
            self._on_sent(reply)
        return routed

    # Folders

    @mutation
    def create_folder(self, name: str) -> UserFolder:
        folder = UserFolder(id=new_id("folder"), name=self._validate_folder_name(name))
        self.user_folders.append(folder)
        logger.info("folder_created", folder_id=folder.id, name=folder.name)
        self.notifier.info(f'Folder "{folder.name}" created.')
        return folder

    @mutation
    def rename_folder(self, folder_id: str, new_name: str) -> UserFolder:
        """Rename a user folder; its messages follow."""
        folder = self._require_folder(folder_id)
        name = self._validate_folder_name(new_name, exclude_id=folder_id)
        old = folder.name

        self.store.update_where(lambda m: m.folder == old, {"folder": name})
        renamed = UserFolder(id=folder.id, name=name)
        self.user_folders = [renamed if f.id == folder_id else f for f in self.user_folders]
        if self.current_folder == old:
            self.current_folder = name

        logger.info("folder_renamed", folder_id=folder_id, old=old, new=name)
        self.notifier.info(f'Folder renamed to "{name}".')
        return renamed

    @mutation
    def delete_folder(self, folder_id: str) -> int:
        """Delete a user folder, moving what it held to the fallback folder.

        Returns:
            Number of messages moved.
        """
        folder = self._require_folder(folder_id)
        fallback = self._config.folder_delete_fallback

        member_ids = [m.id for m in self.store.get() if m.folder == folder.name]
        self.scheduler.cancel_many(member_ids)
        moved = self.store.update_where(lambda m: m.folder == folder.name, {"folder": fallback})
        self.user_folders = [f for f in self.user_folders if f.id != folder_id]
        if self.current_folder == folder.name:
            self.current_folder = SystemFolder.INBOX.value

        logger.info("folder_deleted", folder_id=folder_id, name=folder.name, moved=moved)
        self.notifier.info(f'Folder "{folder.name}" deleted. Its messages were moved to {fallback}.')
        return moved

    # Settings

    @mutation
    def update_signature(self, signature: Signature) -> AppSettings:
        return self._update_settings(signature=signature, message="Signature saved.")

    @mutation
    def update_auto_responder(self, auto_responder: AutoResponder) -> AppSettings:
        start, end = auto_responder.start_date, auto_responder.end_date
        if start is not None and end is not None and end < start:
            raise ValidationError("The auto-responder cannot end before it starts.")
        return self._update_settings(
            auto_responder=auto_responder, message="Auto-responder settings saved."
        )

    @mutation
    def add_rule(self, condition: RuleCondition, action: RuleAction) -> Rule:
        rule = Rule(id=new_id("rule"), condition=condition, action=action)
        problem = rule_problem(rule)
        if problem is not None:
            raise ValidationError(f"Invalid rule: {problem}.")
        self._update_settings(rules=[*self.app_settings.rules, rule], message="Rule added.")
        return rule

    @mutation
    def delete_rule(self, rule_id: str) -> None:
        rules = [r for r in self.app_settings.rules if r.id != rule_id]
        if len(rules) == len(self.app_settings.rules):
            raise NotFoundError(f"Rule not found: {rule_id}")
        self._update_settings(rules=rules, message="Rule deleted.")

    @mutation
    def update_send_delay(self, send_delay: SendDelay) -> AppSettings:
        return self._update_settings(send_delay=send_delay, message="Send delay saved.")

    # Navigation

    @mutation
    def set_current_folder(self, folder: str | SystemFolder) -> None:
        """Switch the mail list to ``folder``; search and selection reset."""
        self.current_folder = folder_name(folder)
        self.search_query = ""
        self.selected_conversation_id = None
        self.selected_conversation_ids.clear()

    @mutation
    def set_search_query(self, query: str) -> None:
        self.search_query = query
        self.selected_conversation_ids.clear()

    @mutation
    def open_conversation(self, conversation_id: str) -> Conversation:
        """Show a conversation and mark it read."""
        conversation = self.require_conversation(conversation_id)
        self.selected_conversation_id = conversation_id
        if not conversation.is_read:
            self._set_read([conversation], True)
            conversation = self.require_conversation(conversation_id)
        return conversation

    @mutation
    def close_conversation(self) -> None:
        self.selected_conversation_id = None

    async def summarize_conversation(self, conversation_id: str) -> str:
        """Summarize a conversation with the configured summarizer.

        Raises:
            NotFoundError: If the conversation does not exist.
            SummarizerError: If the model is unreachable or fails.
        """
        conversation = self.require_conversation(conversation_id)
        if self._summarizer is None:
            self._summarizer = OllamaSummarizer(OllamaClient(self._config))
        try:
            return await summarize_conversation(conversation, self._summarizer)
        except SummarizerError as exc:
            logger.warning("summary_failed", conversation_id=conversation_id, error=str(exc))
            self.notifier.error("Could not summarize this conversation.")
            raise

    # Internals

    def _set_read(self, conversations: list[Conversation], is_read: bool) -> int:
        ids = {e.id for c in conversations for e in c.emails}
        return self.store.update_where(lambda m: m.id in ids, {"is_read": is_read})

    def _move(self, conversations: list[Conversation], target: str) -> int:
        ids = {e.id for c in conversations for e in c.emails}
        self.scheduler.cancel_many(ids)
        self._cancel_autosaves_for(ids)
        self.store.update_where(lambda m: m.id in ids, {"folder": target})
        moved_ids = {c.id for c in conversations}
        self._forget_selection(moved_ids)
        logger.info("conversations_moved", conversations=len(conversations), target=target)
        return len(conversations)

    def _delete(self, conversations: list[Conversation]) -> tuple[int, int]:
        """Trash conversations, purging those already in Trash.

        Returns:
            (moved to Trash, permanently removed)
        """
        trash = SystemFolder.TRASH.value
        to_trash = {e.id for c in conversations if c.folder != trash for e in c.emails}
        to_purge = {e.id for c in conversations if c.folder == trash for e in c.emails}

        self.scheduler.cancel_many(to_trash | to_purge)
        self._cancel_autosaves_for(to_trash | to_purge)
        if to_trash:
            self.store.update_where(
                lambda m: m.id in to_trash, {"folder": trash, "is_read": True}
            )
        if to_purge:
            self.store.remove_where(lambda m: m.id in to_purge)

        self._forget_selection({c.id for c in conversations})
        trashed = sum(1 for c in conversations if c.folder != trash)
        purged = len(conversations) - trashed
        logger.info("conversations_deleted", trashed=trashed, purged=purged)
        return trashed, purged

    def _find_draft(self, draft_id: str | None) -> Message | None:
        message = self.store.find(draft_id) if draft_id else None
        if message is None or message.folder != SystemFolder.DRAFTS.value:
            return None
        return message

    def _discard_draft(self, draft_id: str) -> None:
        self.scheduler.cancel(draft_id)
        self._cancel_autosaves_for({draft_id})
        self.store.remove_where(lambda m: m.id == draft_id)

    def _cancel_autosaves_for(self, message_ids: set[str]) -> None:
        """Stop pending autosaves that would write to ``message_ids``."""
        for compose_key, draft_id in list(self._autosave_drafts.items()):
            if draft_id in message_ids:
                self.scheduler.cancel(self._autosave_key(compose_key))
                del self._autosave_drafts[compose_key]

    def _forget_selection(self, conversation_ids: set[str]) -> None:
        self.selected_conversation_ids -= conversation_ids
        if self.selected_conversation_id in conversation_ids:
            self.selected_conversation_id = None

    def _resolve_conversations(self, conversation_ids: Iterable[str]) -> list[Conversation]:
        conversations = [
            c for c in (self.get_conversation(cid) for cid in conversation_ids) if c is not None
        ]
        if not conversations:
            raise NotFoundError("None of the conversations exist")
        return conversations

    def _selected_conversations(self) -> list[Conversation]:
        return [
            c for c in self.conversations if c.id in self.selected_conversation_ids
        ]

    def _resolve_target_folder(self, target: str | SystemFolder) -> str:
        name = folder_name(target).strip()
        if name in STORAGE_FOLDERS:
            if name == SystemFolder.SCHEDULED.value:
                raise ValidationError("Messages can only be scheduled from the compose window.")
            return name
        for folder in self.user_folders:
            if folder.name.lower() == name.lower():
                return folder.name
        raise ValidationError(f'Unknown folder "{name}".')

    def _require_folder(self, folder_id: str) -> UserFolder:
        for folder in self.user_folders:
            if folder.id == folder_id:
                return folder
        raise NotFoundError(f"Folder not found: {folder_id}")

    def _validate_folder_name(self, name: str, exclude_id: str | None = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Folder name cannot be empty.")
        if name.lower() in _RESERVED_FOLDER_NAMES:
            raise ValidationError(f'"{name}" is a reserved folder name.')
        for folder in self.user_folders:
            if folder.id != exclude_id and folder.name.lower() == name.lower():
                raise ValidationError(f'A folder named "{name}" already exists.')
        return name

    def _update_settings(self, *, message: str, **changes: Any) -> AppSettings:
        updated = self.app_settings.model_copy(update=changes)
        if self._repository is not None:
            try:
                self._repository.save(self.identity.email_address, updated)
            except sqlite3.Error as exc:
                logger.warning(
                    "settings_save_failed", fields=sorted(changes), error=str(exc)
                )
                self.notifier.error("Could not save your settings. Please try again.")
                raise SettingsStorageError("Settings could not be saved") from exc
        self.app_settings = updated
        logger.info("settings_updated", fields=sorted(changes))
        self.notifier.info(message)
        return self.app_settings

    def _send_delay_seconds(self) -> int:
        send_delay = self.app_settings.send_delay
        return send_delay.duration if send_delay.is_enabled else 0

    @staticmethod
    def _require_recipient(payload: ComposePayload) -> None:
        if not payload.to.strip():
            raise ValidationError("Add at least one recipient.")

    @staticmethod
    def _autosave_key(compose_key: str) -> str:
        return f"autosave:{compose_key}"

    def _close_compose(self, compose_key: str | None) -> None:
        if compose_key is None:
            return
        self.scheduler.cancel(self._autosave_key(compose_key))
        self._autosave_drafts.pop(compose_key, None)

    def _content(self, payload: ComposePayload) -> dict[str, Any]:
        return {
            "recipient_email": payload.to,
            "cc": payload.cc,
            "bcc": payload.bcc,
            "subject": payload.subject,
            "body": payload.body,
            "snippet": make_snippet(payload.body, self._config.snippet_length),
            "attachments": list(payload.attachments),
        }

    def _outgoing(
        self,
        payload: ComposePayload,
        conversation_id: str,
        folder: SystemFolder,
        scheduled_send_time: datetime | None = None,
    ) -> Message:
        return Message(
            id=new_id("email"),
            conversation_id=conversation_id,
            sender_name=self.identity.display_name,
            sender_email=self.identity.email_address,
            timestamp=self._clock(),
            is_read=True,
            folder=folder,
            scheduled_send_time=scheduled_send_time,
            **self._content(payload),
        )

    def _save_draft(
        self, payload: ComposePayload, draft_id: str | None, conversation_id: str | None
    ) -> str:
        existing = self._find_draft(draft_id)
        if existing is not None:
            self.scheduler.cancel(existing.id)
            self.store.update_where(
                lambda m: m.id == existing.id,
                {
                    **self._content(payload),
                    "timestamp": self._clock(),
                    "folder": SystemFolder.DRAFTS.value,
                    "is_read": True,
                },
            )
            logger.info("draft_updated", message_id=existing.id)
            return existing.id

        draft = self._outgoing(payload, conversation_id or new_id("conv"), SystemFolder.DRAFTS)
        self.store.insert(draft)
        logger.info("draft_created", message_id=draft.id, conversation_id=draft.conversation_id)
        return draft.id

    def _deliver(self, message: Message) -> None:
        self.store.insert(message)
        logger.info("message_sent", message_id=message.id, recipient=message.recipient_email)
        self.notifier.info("Message sent.")
        if self._on_sent is not None:
            self._on_sent(message)

    def _commit_pending_send(self) -> None:
        pending, self._pending_send = self._pending_send, None
        if pending is None:
            return
        self._deliver(pending.email)

    def _arm_scheduled(self, message: Message) -> None:
        assert message.scheduled_send_time is not None
        self.scheduler.arm_at(
            message.id,
            functools.partial(self._commit_scheduled, message.id),
            when=message.scheduled_send_time,
            kind=DeferredKind.SCHEDULED_SEND,
        )

    def _commit_scheduled(self, message_id: str) -> None:
        message = self.store.find(message_id)
        if message is None or message.folder != SystemFolder.SCHEDULED.value:
            logger.info("scheduled_send_stale", message_id=message_id)
            return
        self.store.update_where(
            lambda m: m.id == message_id,
            {"folder": SystemFolder.SENT.value, "timestamp": self._clock()},
        )
        sent = self.store.find(message_id)
        logger.info("scheduled_message_sent", message_id=message_id)
        self.notifier.info("Scheduled message sent.")
        if self._on_sent is not None and sent is not None:
            self._on_sent(sent)
